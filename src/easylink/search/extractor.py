"""Content unit extraction from a document's structural metadata and raw text."""

from __future__ import annotations

from collections.abc import Iterator

from easylink.domain.model import ContentUnit, DocumentStructure


def iter_heading_units(structure: DocumentStructure) -> Iterator[ContentUnit]:
    for heading in structure.headings:
        yield ContentUnit(
            kind="heading",
            text=heading.heading,
            link_target=heading.heading,
            source=heading.markdown_source,
        )


def iter_block_units(content: str, structure: DocumentStructure) -> Iterator[ContentUnit]:
    for section in structure.sections:
        if not section.is_content:
            continue
        section_text = content[section.position.start.offset : section.position.end.offset]
        if not section_text.strip():
            continue

        block_id = structure.block_id_ending_at(section.position.end.line)
        if block_id:
            yield ContentUnit(kind="block", text=section_text, link_target=f"^{block_id}")
        else:
            yield ContentUnit(kind="block", text=section_text, position=section.position)


def extract_units(content: str, structure: DocumentStructure | None) -> list[ContentUnit]:
    """Return heading units followed by block units for one document.

    Documents without structural metadata (not yet indexed) yield no units.
    """
    if structure is None:
        return []
    return [*iter_heading_units(structure), *iter_block_units(content, structure)]
