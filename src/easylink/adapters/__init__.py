"""Adapters between the search core and the host's document store."""

from easylink.adapters.document_source import AbstractDocumentSource, FakeDocumentSource
from easylink.adapters.filesystem_vault import FileSystemVault


__all__ = ["AbstractDocumentSource", "FakeDocumentSource", "FileSystemVault"]
