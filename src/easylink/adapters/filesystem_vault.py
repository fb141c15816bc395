"""Filesystem-backed document source: a folder of markdown notes."""

from collections import Counter
import logging
from pathlib import Path
import shutil

import anyio

from easylink.adapters.document_source import AbstractDocumentSource, splice_line
from easylink.domain.errors import CorpusReadError
from easylink.domain.model import MARKDOWN_EXTENSION, Document, DocumentStructure
from easylink.utils.markdown_structure import parse_markdown_structure


logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".easylink-tmp"


class FileSystemVault(AbstractDocumentSource):
    """Document source reading ``*.md`` files below a vault root.

    - Hidden files and directories (``.obsidian``, ``.git``, ...) are skipped.
    - Structural metadata is parsed on demand and cached per file modification
      time, which plays the role of the host's metadata cache.
    - Writes go to a temporary sibling file that atomically replaces the note.
    """

    def __init__(self, root: Path, *, encoding: str = "utf-8") -> None:
        self.root = Path(root).expanduser().resolve(strict=False)
        if not self.root.is_dir():
            raise NotADirectoryError(f"Vault root is not a directory: {self.root}")
        self.encoding = encoding
        self._structure_cache: dict[str, tuple[int, DocumentStructure]] = {}
        self._basename_counts: Counter[str] | None = None

    def _scan(self) -> list[str]:
        paths: list[str] = []
        for candidate in self.root.rglob(f"*{MARKDOWN_EXTENSION}"):
            relative = candidate.relative_to(self.root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if candidate.is_file():
                paths.append(relative.as_posix())
        return sorted(paths)

    def _count_basenames(self, paths: list[str]) -> None:
        self._basename_counts = Counter(Document(path=path).basename.casefold() for path in paths)

    def _resolve(self, document: Document) -> Path:
        path = (self.root / document.path).resolve(strict=False)
        if not path.is_relative_to(self.root):
            raise CorpusReadError(document.path, "path escapes the vault root")
        return path

    async def list_documents(self) -> list[Document]:
        paths = await anyio.to_thread.run_sync(self._scan)
        self._count_basenames(paths)
        logger.debug("Vault %s: %d markdown documents", self.root, len(paths))
        return [Document(path=path) for path in paths]

    async def read(self, document: Document) -> str:
        path = self._resolve(document)
        try:
            async with await anyio.open_file(path, encoding=self.encoding, newline="") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise CorpusReadError(document.path, str(e)) from e

    async def get_structure(self, document: Document) -> DocumentStructure | None:
        path = self._resolve(document)
        try:
            mtime_ns = (await anyio.Path(path).stat()).st_mtime_ns
        except OSError as e:
            raise CorpusReadError(document.path, str(e)) from e

        cached = self._structure_cache.get(document.path)
        if cached and cached[0] == mtime_ns:
            return cached[1]

        structure = parse_markdown_structure(await self.read(document))
        self._structure_cache[document.path] = (mtime_ns, structure)
        return structure

    async def append_to_line(self, document: Document, line: int, text: str) -> None:
        path = self._resolve(document)
        updated = splice_line(await self.read(document), line, text)
        temp_path = path.with_name(f".{path.name}{TEMP_SUFFIX}")
        try:
            async with await anyio.open_file(temp_path, "w", encoding=self.encoding, newline="") as f:
                await f.write(updated)
            await anyio.to_thread.run_sync(shutil.copymode, path, temp_path)
            await anyio.Path(temp_path).replace(path)
        except OSError:
            leftover = anyio.Path(temp_path)
            if await leftover.exists():
                await leftover.unlink()
            raise
        finally:
            self._structure_cache.pop(document.path, None)
        logger.info("Appended %r to %s:%d", text, document.path, line + 1)

    def link_text(self, document: Document) -> str:
        """Shortest unambiguous link: the basename unless another note shares it."""
        if self._basename_counts is None:
            self._count_basenames(self._scan())
        counts = self._basename_counts or Counter()
        if counts[document.basename.casefold()] > 1:
            path = document.path
            if path.lower().endswith(MARKDOWN_EXTENSION):
                path = path[: -len(MARKDOWN_EXTENSION)]
            return path
        return document.basename
