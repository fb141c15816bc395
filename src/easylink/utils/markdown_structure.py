"""Structural metadata for markdown notes.

Produces the same shape of metadata a note-taking host keeps in its metadata
cache: ATX headings, top-level sections separated by blank lines, and block
anchors (a trailing `` ^id`` marker on a block's line).

Section types:
    yaml           front matter block
    heading        a single ATX heading line
    code           fenced code block (kept whole, blank lines included)
    list           block starting with a list marker
    blockquote     block starting with ``>``
    table          block starting with ``|``
    thematicBreak  ``---``, ``***`` or ``___`` on its own line
    paragraph      anything else
"""

from __future__ import annotations

import re

from easylink.domain.model import BlockInfo, DocumentStructure, HeadingInfo, Loc, Position, SectionInfo
from easylink.utils.front_matter import find_front_matter


HEADING_PATTERN = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
FENCE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})")
THEMATIC_BREAK_PATTERN = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
LIST_PATTERN = re.compile(r"^[ \t]*(?:[-*+]|\d{1,9}[.)])(?:[ \t]|$)")
BLOCKQUOTE_PATTERN = re.compile(r"^ {0,3}>")
# Only bullets and lists numbered 1 with content may interrupt a paragraph.
LIST_INTERRUPT_PATTERN = re.compile(r"^ {0,3}(?:[-*+]|1[.)])[ \t]+\S")
TABLE_PATTERN = re.compile(r"^ {0,3}\|")
BLOCK_ID_PATTERN = re.compile(r"(?:^|[ \t])\^([A-Za-z0-9-]+)[ \t]*$")


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def find_block_id(line: str) -> str | None:
    """Return the block anchor id at the end of ``line``, if any."""
    match = BLOCK_ID_PATTERN.search(_strip_cr(line))
    return match.group(1) if match else None


class _LineIndex:
    """Maps zero-based line numbers to character offsets."""

    def __init__(self, content: str) -> None:
        self.lines = content.split("\n")
        self.offsets: list[int] = []
        offset = 0
        for line in self.lines:
            self.offsets.append(offset)
            offset += len(line) + 1

    def __len__(self) -> int:
        return len(self.lines)

    def span(self, first: int, last: int) -> Position:
        last_line = _strip_cr(self.lines[last])
        return Position(
            start=Loc(line=first, col=0, offset=self.offsets[first]),
            end=Loc(line=last, col=len(last_line), offset=self.offsets[last] + len(last_line)),
        )


def _is_blank(line: str) -> bool:
    return not line.strip()


def _starts_new_block(line: str, block_type: str) -> bool:
    if HEADING_PATTERN.match(line) or FENCE_PATTERN.match(line) or THEMATIC_BREAK_PATTERN.match(line):
        return True
    if block_type == "paragraph":
        return bool(LIST_INTERRUPT_PATTERN.match(line) or BLOCKQUOTE_PATTERN.match(line))
    return False


def _classify(first_line: str) -> str:
    if LIST_PATTERN.match(first_line):
        return "list"
    if BLOCKQUOTE_PATTERN.match(first_line):
        return "blockquote"
    if TABLE_PATTERN.match(first_line):
        return "table"
    return "paragraph"


def _fence_end(index: _LineIndex, start: int, fence: str) -> int:
    """Return the closing line of a fenced block opened at ``start`` (EOF if unclosed)."""
    marker = fence[0]
    for line_no in range(start + 1, len(index)):
        stripped = _strip_cr(index.lines[line_no]).strip()
        if stripped.startswith(fence) and set(stripped) == {marker}:
            return line_no
    return len(index) - 1


def parse_markdown_structure(content: str) -> DocumentStructure:
    """Parse ``content`` into headings, sections and block anchors."""
    index = _LineIndex(content)
    headings: list[HeadingInfo] = []
    sections: list[SectionInfo] = []
    blocks: dict[str, BlockInfo] = {}

    frontmatter, line_no = find_front_matter(content)
    if line_no >= 0:
        sections.append(SectionInfo(type="yaml", position=index.span(0, line_no)))
    line_no += 1

    while line_no < len(index):
        line = _strip_cr(index.lines[line_no])
        if _is_blank(line):
            line_no += 1
            continue

        heading = HEADING_PATTERN.match(line)
        if heading:
            position = index.span(line_no, line_no)
            label = (heading.group(2) or "").strip()
            if label:
                headings.append(HeadingInfo(heading=label, level=len(heading.group(1)), position=position))
            sections.append(SectionInfo(type="heading", position=position))
            line_no += 1
            continue

        fence = FENCE_PATTERN.match(line)
        if fence:
            end = _fence_end(index, line_no, fence.group(1))
            sections.append(SectionInfo(type="code", position=index.span(line_no, end)))
            line_no = end + 1
            continue

        if THEMATIC_BREAK_PATTERN.match(line):
            sections.append(SectionInfo(type="thematicBreak", position=index.span(line_no, line_no)))
            line_no += 1
            continue

        block_type = _classify(line)
        end = line_no
        while end + 1 < len(index):
            following = _strip_cr(index.lines[end + 1])
            if _is_blank(following) or _starts_new_block(following, block_type):
                break
            end += 1

        position = index.span(line_no, end)
        sections.append(SectionInfo(type=block_type, position=position))
        for anchored in range(line_no, end + 1):
            block_id = find_block_id(index.lines[anchored])
            if block_id and block_id not in blocks:
                block_position = position if anchored == end else index.span(anchored, anchored)
                blocks[block_id] = BlockInfo(id=block_id, position=block_position)
        line_no = end + 1

    return DocumentStructure(headings=headings, sections=sections, blocks=blocks, frontmatter=frontmatter)
