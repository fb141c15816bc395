"""Document source abstraction.

A document source is everything the search core needs from the host
application: document enumeration, structural metadata, raw text, the
canonical link form of a document, and a single write primitive used to
persist block anchors.
"""

from abc import ABC, abstractmethod
import logging

from easylink.domain.errors import CorpusReadError
from easylink.domain.model import Document, DocumentStructure
from easylink.utils.markdown_structure import parse_markdown_structure


logger = logging.getLogger(__name__)


def splice_line(content: str, line: int, text: str) -> str:
    """Append ``text`` to the end of ``line`` (zero-based) in ``content``.

    A trailing carriage return stays at the end of the line.

    Raises:
        IndexError: ``line`` is outside the document
    """
    lines = content.split("\n")
    if line < 0 or line >= len(lines):
        raise IndexError(f"line {line} is outside a document of {len(lines)} lines")
    target = lines[line]
    if target.endswith("\r"):
        lines[line] = target[:-1] + text + "\r"
    else:
        lines[line] = target + text
    return "\n".join(lines)


class AbstractDocumentSource(ABC):
    """Abstract provider of documents, their structural metadata and content."""

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """Enumerate every document in corpus scope, in scan order."""
        raise NotImplementedError

    @abstractmethod
    async def get_structure(self, document: Document) -> DocumentStructure | None:
        """Return structural metadata, or None when the document is not indexed yet.

        Raises:
            CorpusReadError: metadata could not be retrieved
        """
        raise NotImplementedError

    @abstractmethod
    async def read(self, document: Document) -> str:
        """Read the current raw text of ``document``.

        Raises:
            CorpusReadError: content could not be retrieved
        """
        raise NotImplementedError

    @abstractmethod
    async def append_to_line(self, document: Document, line: int, text: str) -> None:
        """Append ``text`` to ``line`` of ``document`` and persist it.

        Raises:
            CorpusReadError: the document could not be read before the write
            IndexError: ``line`` is outside the document
            OSError: the write failed
        """
        raise NotImplementedError

    def link_text(self, document: Document) -> str:
        """Canonical link form of ``document`` (without any ``#`` suffix)."""
        return document.basename


class FakeDocumentSource(AbstractDocumentSource):
    """In-memory document source for testing.

    Structural metadata is parsed from the stored content unless a document is
    registered with ``indexed=False``. Paths in ``failing_reads`` raise
    :class:`CorpusReadError` on read.
    """

    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self._contents: dict[str, str] = {}
        self._structures: dict[str, DocumentStructure | None] = {}
        self.failing_reads: set[str] = set()
        self.failing_writes: set[str] = set()
        self.writes: list[tuple[str, int, str]] = []
        self.reads: list[str] = []
        for path, content in (documents or {}).items():
            self.add(path, content)

    def add(
        self,
        path: str,
        content: str,
        *,
        indexed: bool = True,
        structure: DocumentStructure | None = None,
    ) -> Document:
        self._contents[path] = content
        if structure is not None:
            self._structures[path] = structure
        else:
            self._structures[path] = parse_markdown_structure(content) if indexed else None
        return Document(path=path)

    def content(self, path: str) -> str:
        return self._contents[path]

    async def list_documents(self) -> list[Document]:
        return [Document(path=path) for path in self._contents]

    async def get_structure(self, document: Document) -> DocumentStructure | None:
        if document.path not in self._contents:
            raise CorpusReadError(document.path, "document not found")
        return self._structures[document.path]

    async def read(self, document: Document) -> str:
        self.reads.append(document.path)
        if document.path in self.failing_reads or document.path not in self._contents:
            raise CorpusReadError(document.path, "simulated read failure")
        return self._contents[document.path]

    async def append_to_line(self, document: Document, line: int, text: str) -> None:
        if document.path in self.failing_writes:
            raise OSError("simulated write failure")
        updated = splice_line(await self.read(document), line, text)
        self.add(document.path, updated)
        self.writes.append((document.path, line, text))
