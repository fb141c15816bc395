"""Domain model - entities and value objects.

Following Cosmic Python principles:
- Domain model has NO dependencies on infrastructure
- Value Objects (positions, structural metadata) are immutable
- Entities (documents, content units) have identity
- Uses Pydantic dataclasses for validation

Structural metadata (headings, sections, block anchors) is produced by the
document source and consumed as-is; nothing in this module parses markdown.
"""

from typing import Annotated, Literal

from pydantic import Field
from pydantic.dataclasses import dataclass


MARKDOWN_EXTENSION = ".md"

UnitKind = Literal["heading", "block"]

NON_CONTENT_SECTION_TYPES = frozenset({"heading", "yaml"})


# Value Objects (immutable)
@dataclass(frozen=True)
class Loc:
    """A point in a document: zero-based line, column and character offset."""

    line: Annotated[int, Field(ge=0)]
    col: Annotated[int, Field(ge=0)]
    offset: Annotated[int, Field(ge=0)]


@dataclass(frozen=True)
class Position:
    """A span between two locations (end is exclusive for offsets)."""

    start: Loc
    end: Loc

    def __post_init__(self) -> None:
        if self.end.offset < self.start.offset:
            raise ValueError("Position end must not precede its start")


@dataclass(frozen=True)
class HeadingInfo:
    """A heading as reported by the structural metadata provider."""

    heading: str
    level: Annotated[int, Field(ge=1, le=6)]
    position: Position

    @property
    def markdown_source(self) -> str:
        return "#" * self.level + " " + self.heading


@dataclass(frozen=True)
class SectionInfo:
    """A top-level section of a document.

    ``type`` distinguishes heading sections (``"heading"``) from content
    sections (``"paragraph"``, ``"list"``, ``"code"``, ...).
    """

    type: str
    position: Position

    @property
    def is_heading(self) -> bool:
        return self.type == "heading"

    @property
    def is_content(self) -> bool:
        """False for heading sections and front matter."""
        return self.type not in NON_CONTENT_SECTION_TYPES


@dataclass(frozen=True)
class BlockInfo:
    """An existing block anchor (``^id``) and the position of the block it names."""

    id: Annotated[str, Field(min_length=1)]
    position: Position


@dataclass(frozen=True)
class DocumentStructure:
    """Structural metadata for one document."""

    headings: list[HeadingInfo] = Field(default_factory=list)
    sections: list[SectionInfo] = Field(default_factory=list)
    blocks: dict[str, BlockInfo] = Field(default_factory=dict)
    frontmatter: dict = Field(default_factory=dict)

    def block_id_ending_at(self, line: int) -> str | None:
        """Return the first block anchor whose block ends on ``line``."""
        for block_id, block in self.blocks.items():
            if block.position.end.line == line:
                return block_id
        return None


# Entities (have identity)
@dataclass
class Document:
    """A document in the corpus, identified by its vault-relative path."""

    path: Annotated[str, Field(min_length=1)]

    def __eq__(self, other: object) -> bool:
        """Documents are equal if they have the same path (identity)."""
        if not isinstance(other, Document):
            return False
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def basename(self) -> str:
        """File name without the markdown extension."""
        name = self.name
        if name.lower().endswith(MARKDOWN_EXTENSION):
            return name[: -len(MARKDOWN_EXTENSION)]
        return name

    @property
    def parent(self) -> str:
        """Folder path of the document, empty for documents at the vault root."""
        if "/" not in self.path:
            return ""
        return self.path.rsplit("/", 1)[0]


@dataclass
class ContentUnit:
    """The atomic scorable item: a heading or a content block.

    Invariants:
    - heading units always carry a non-empty ``link_target`` (the heading text)
    - block units carry exactly one of ``link_target`` (``"^id"``) or ``position``

    Mutable only through :meth:`attach_anchor`, which moves a block unit from the
    "position" state to the "link target" state once its anchor exists.
    """

    kind: UnitKind
    text: str
    link_target: str = ""
    position: Position | None = None
    source: str = ""

    def __post_init__(self) -> None:
        if self.kind == "heading":
            if not self.link_target:
                raise ValueError("Heading units require a link target")
            if self.position is not None:
                raise ValueError("Heading units never carry a position")
        elif bool(self.link_target) == (self.position is not None):
            raise ValueError("Block units carry exactly one of link_target or position")
        if not self.source:
            self.source = self.text

    @property
    def needs_anchor(self) -> bool:
        return self.kind == "block" and not self.link_target

    def attach_anchor(self, link_target: str) -> None:
        """Record a materialized block anchor and drop the pending position."""
        if self.kind != "block":
            raise ValueError("Only block units can receive an anchor")
        if not link_target.startswith("^"):
            raise ValueError(f"Block link targets start with '^', got {link_target!r}")
        self.link_target = link_target
        self.position = None


@dataclass
class SearchResult:
    """A scored unit tagged with its owning document. Never persisted."""

    document: Document
    unit: ContentUnit
    score: Annotated[float, Field(ge=0.0, le=1.0)]

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.document.path, self.unit.text)
