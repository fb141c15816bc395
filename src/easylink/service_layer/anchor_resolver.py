"""Lazy block anchor assignment.

A block result without an anchor only carries the position of its block. When
the caller acts on it, the resolver appends `` ^id`` to the block's last line,
persists the document once, and records the new target on the result so any
later resolution of the same result is a no-op.

Writes are serialized per document path. Under the lock the resolver re-reads
the document; if the block's last line already ends in an anchor (written by
an earlier resolution of another result for the same block), that anchor is
returned instead of writing a second one.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable
import logging
import secrets
import string

from easylink.adapters.document_source import AbstractDocumentSource
from easylink.domain.errors import AnchorWriteFailedError, CorpusReadError
from easylink.domain.model import SearchResult
from easylink.observability.metrics import ANCHOR_WRITES
from easylink.utils.markdown_structure import find_block_id


logger = logging.getLogger(__name__)

BLOCK_ID_ALPHABET = string.ascii_lowercase + string.digits
BLOCK_ID_LENGTH = 6
MAX_ID_ATTEMPTS = 32


def generate_block_id(length: int = BLOCK_ID_LENGTH) -> str:
    """Random lowercase base-36 identifier."""
    return "".join(secrets.choice(BLOCK_ID_ALPHABET) for _ in range(length))


def existing_block_ids(content: str) -> set[str]:
    ids: set[str] = set()
    for line in content.split("\n"):
        block_id = find_block_id(line)
        if block_id:
            ids.add(block_id)
    return ids


class AnchorResolver:
    """Turns search results into stable link targets, writing anchors when needed."""

    def __init__(
        self,
        source: AbstractDocumentSource,
        *,
        id_factory: Callable[[], str] = generate_block_id,
    ) -> None:
        self.source = source
        self._id_factory = id_factory
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _new_block_id(self, taken: set[str], path: str, line: int) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in taken:
                return candidate
        raise AnchorWriteFailedError(path, line, f"no unused block id after {MAX_ID_ATTEMPTS} attempts")

    async def resolve(self, result: SearchResult) -> str:
        """Return the result's link target, materializing a block anchor at most once.

        Raises:
            AnchorWriteFailedError: the document could not be read or written
        """
        unit = result.unit
        if unit.link_target:
            return unit.link_target

        document = result.document
        async with self._locks[document.path]:
            # Another resolution of this same result may have finished while we waited.
            if unit.link_target:
                return unit.link_target

            if unit.position is None:
                raise ValueError("Block unit has neither a link target nor a position")
            line = unit.position.end.line
            try:
                content = await self.source.read(document)
            except CorpusReadError as e:
                ANCHOR_WRITES.labels(result="failed").inc()
                raise AnchorWriteFailedError(document.path, line, e.reason) from e

            lines = content.split("\n")
            if line >= len(lines):
                ANCHOR_WRITES.labels(result="failed").inc()
                raise AnchorWriteFailedError(document.path, line, "line is outside the document")

            current = find_block_id(lines[line])
            if current:
                target = f"^{current}"
                ANCHOR_WRITES.labels(result="reused").inc()
                logger.info("Reusing block anchor %s on %s:%d", target, document.path, line + 1)
            else:
                block_id = self._new_block_id(existing_block_ids(content), document.path, line)
                try:
                    await self.source.append_to_line(document, line, f" ^{block_id}")
                except (CorpusReadError, IndexError, OSError) as e:
                    ANCHOR_WRITES.labels(result="failed").inc()
                    raise AnchorWriteFailedError(document.path, line, str(e)) from e
                target = f"^{block_id}"
                ANCHOR_WRITES.labels(result="written").inc()
                logger.info("Wrote block anchor %s to %s:%d", target, document.path, line + 1)

            unit.attach_anchor(target)
            return target
