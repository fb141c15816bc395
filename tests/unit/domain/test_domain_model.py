"""Unit tests for domain entities and value objects."""

from pydantic import ValidationError
import pytest

from easylink.domain.errors import (
    AnchorWriteFailedError,
    BelowThresholdError,
    EasyLinkError,
    EmptyQueryError,
    NoMatchesError,
    ResolveError,
    SearchError,
)
from easylink.domain.model import (
    BlockInfo,
    ContentUnit,
    Document,
    DocumentStructure,
    HeadingInfo,
    Loc,
    Position,
    SearchResult,
)


def _position(line: int = 3) -> Position:
    return Position(start=Loc(line=line, col=0, offset=10), end=Loc(line=line, col=5, offset=15))


class TestDocument:
    def test_basename_and_parent(self):
        document = Document(path="Study/Notes/Machine Learning.md")
        assert document.name == "Machine Learning.md"
        assert document.basename == "Machine Learning"
        assert document.parent == "Study/Notes"

    def test_root_document_has_empty_parent(self):
        assert Document(path="Inbox.md").parent == ""

    def test_identity_is_the_path(self):
        assert Document(path="a.md") == Document(path="a.md")
        assert len({Document(path="a.md"), Document(path="a.md"), Document(path="b.md")}) == 2

    def test_empty_path_is_invalid(self):
        with pytest.raises(ValidationError):
            Document(path="")


class TestPosition:
    def test_end_before_start_is_invalid(self):
        with pytest.raises(ValueError):
            Position(start=Loc(line=1, col=0, offset=20), end=Loc(line=0, col=0, offset=5))


class TestStructuralMetadata:
    def test_heading_info_builds_with_position(self):
        heading = HeadingInfo(heading="Supervised methods", level=2, position=_position())
        assert heading.level == 2
        assert heading.markdown_source == "## Supervised methods"

    @pytest.mark.parametrize("level", [0, 7])
    def test_heading_level_bounds(self, level):
        with pytest.raises(ValidationError):
            HeadingInfo(heading="Title", level=level, position=_position())

    def test_block_info_requires_id(self):
        assert BlockInfo(id="sup01", position=_position()).id == "sup01"
        with pytest.raises(ValidationError):
            BlockInfo(id="", position=_position())

    def test_negative_location_is_invalid(self):
        with pytest.raises(ValidationError):
            Loc(line=-1, col=0, offset=0)

    def test_block_id_ending_at(self):
        structure = DocumentStructure(blocks={"sup01": BlockInfo(id="sup01", position=_position(line=10))})
        assert structure.block_id_ending_at(10) == "sup01"
        assert structure.block_id_ending_at(9) is None


class TestContentUnit:
    def test_heading_requires_link_target(self):
        with pytest.raises(ValueError):
            ContentUnit(kind="heading", text="Title")

    def test_block_requires_exactly_one_of_target_or_position(self):
        with pytest.raises(ValueError):
            ContentUnit(kind="block", text="body")
        with pytest.raises(ValueError):
            ContentUnit(kind="block", text="body", link_target="^abc", position=_position())

    def test_source_defaults_to_text(self):
        unit = ContentUnit(kind="block", text="body", position=_position())
        assert unit.source == "body"

    def test_attach_anchor_moves_to_target_state(self):
        unit = ContentUnit(kind="block", text="body", position=_position())
        assert unit.needs_anchor
        unit.attach_anchor("^x7f2a1")
        assert unit.link_target == "^x7f2a1"
        assert unit.position is None
        assert not unit.needs_anchor

    def test_attach_anchor_rejects_headings_and_bad_targets(self):
        heading = ContentUnit(kind="heading", text="Title", link_target="Title")
        with pytest.raises(ValueError):
            heading.attach_anchor("^abc")
        block = ContentUnit(kind="block", text="body", position=_position())
        with pytest.raises(ValueError):
            block.attach_anchor("abc")


class TestSearchResult:
    def test_score_must_be_within_unit_interval(self):
        unit = ContentUnit(kind="heading", text="Title", link_target="Title")
        with pytest.raises(ValidationError):
            SearchResult(document=Document(path="a.md"), unit=unit, score=1.5)

    def test_dedup_key(self):
        unit = ContentUnit(kind="heading", text="Title", link_target="Title")
        result = SearchResult(document=Document(path="a.md"), unit=unit, score=0.5)
        assert result.dedup_key == ("a.md", "Title")


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(EmptyQueryError, SearchError)
        assert issubclass(AnchorWriteFailedError, ResolveError)
        assert issubclass(SearchError, EasyLinkError)
        assert issubclass(ResolveError, EasyLinkError)

    def test_user_messages_distinguish_empty_outcomes(self):
        assert NoMatchesError().user_message == "No similar content found."
        below = BelowThresholdError(candidate_count=3, best_score=0.05, min_score=0.1)
        assert below.user_message == "Found results, but they were below your minimum score setting."
        assert below.candidate_count == 3

    def test_anchor_write_failure_names_location(self):
        error = AnchorWriteFailedError("a.md", 4, "disk full")
        assert "a.md:5" in str(error)
