"""Unit tests for the similarity search service."""

import asyncio

import pytest

from easylink.adapters.document_source import FakeDocumentSource
from easylink.config import SearchSettings
from easylink.domain.errors import (
    BelowThresholdError,
    EmptyQueryError,
    NoMatchesError,
    QueryAllStopwordsError,
    SearchBusyError,
)
from easylink.domain.model import Document
from easylink.service_layer.anchor_resolver import AnchorResolver
from easylink.service_layer.search_service import SimilaritySearchService, format_wikilink


ML = "Study/Machine Learning.md"
PASTA = "Kitchen/Pasta.md"


class BlockingSource(FakeDocumentSource):
    """Fake source whose enumeration waits until the test releases it."""

    def __init__(self, documents):
        super().__init__(documents)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def list_documents(self):
        self.entered.set()
        await self.release.wait()
        return await super().list_documents()


@pytest.fixture
def service(fake_source) -> SimilaritySearchService:
    return SimilaritySearchService(fake_source)


@pytest.mark.asyncio
async def test_heading_and_blocks_ranked_by_overlap(service):
    response = await service.search("  machine learning ")

    assert response.query == "machine learning"
    assert response.query_tokens == frozenset({"machine", "learning"})
    summary = [(r.unit.kind, r.unit.link_target, r.score) for r in response.results]
    assert summary == [
        ("heading", "Introduction to Machine Learning", 1.0),
        ("block", "", 1.0),
        ("block", "^sup01", 0.5),
    ]
    assert response.results[1].unit.text == "Machine learning builds models from data."
    assert response.stats.documents_scanned == 2
    assert response.stats.candidates == 3


@pytest.mark.asyncio
async def test_stopwords_removed_from_query(service):
    response = await service.search("the cat")

    assert response.query_tokens == frozenset({"cat"})
    [result] = response.results
    assert result.document.path == PASTA
    assert result.unit.text == "The cat watched the pot boil."
    assert result.unit.position.end.line == 4


@pytest.mark.asyncio
async def test_all_stopword_query_rejected(service):
    with pytest.raises(QueryAllStopwordsError):
        await service.search("a the")


@pytest.mark.asyncio
async def test_all_stopword_query_falls_back_to_raw_tokens(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(all_stopwords_policy="raw_tokens"))

    response = await service.search("a the")

    assert response.query_tokens == frozenset({"a", "the"})
    assert [(r.document.path, r.unit.text.split("\n")[-1]) for r in response.results] == [
        (ML, "Labels guide the training. ^sup01"),
        (PASTA, "Boil water, add salt, cook the pasta."),
        (PASTA, "The cat watched the pot boil."),
    ]
    assert all(r.score == 0.5 for r in response.results)


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   \n\t"])
async def test_empty_query_rejected(service, query):
    with pytest.raises(EmptyQueryError):
        await service.search(query)
    assert not service.is_searching


@pytest.mark.asyncio
async def test_min_query_length(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(min_query_length=4))
    with pytest.raises(EmptyQueryError) as exc_info:
        await service.search("cat")
    assert exc_info.value.user_message == "Please select at least 4 characters."


@pytest.mark.asyncio
async def test_no_matches(service):
    with pytest.raises(NoMatchesError):
        await service.search("zebra")


@pytest.mark.asyncio
async def test_all_matches_below_threshold(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(min_score=0.9))

    with pytest.raises(BelowThresholdError) as exc_info:
        await service.search("machine learning physics")

    assert exc_info.value.candidate_count == 3
    assert exc_info.value.best_score == pytest.approx(2 / 3)


@pytest.mark.asyncio
async def test_min_score_is_inclusive(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(min_score=0.5))
    response = await service.search("machine learning")
    assert [r.score for r in response.results] == [1.0, 1.0, 0.5]


@pytest.mark.asyncio
async def test_max_results_truncates_sorted_results():
    documents = {f"Physics/deep {i:02d}.md": f"quantum physics detail {i}" for i in range(10)}
    documents.update({f"Physics/light {i:02d}.md": f"quantum only {i}" for i in range(20)})
    service = SimilaritySearchService(FakeDocumentSource(documents), SearchSettings(max_results=25, min_score=0.1))

    response = await service.search("quantum physics")

    assert len(response.results) == 25
    scores = [r.score for r in response.results]
    assert scores == sorted(scores, reverse=True)
    assert scores.count(1.0) == 10
    assert all(s >= 0.1 for s in scores)
    assert response.stats.candidates == 30


@pytest.mark.asyncio
async def test_duplicate_units_within_a_document_collapse():
    source = FakeDocumentSource(
        {
            "A.md": "Rust ownership rules.\n\nRust ownership rules.",
            "B.md": "Rust ownership rules.",
        }
    )
    response = await SimilaritySearchService(source).search("rust ownership")

    assert [r.document.path for r in response.results] == ["A.md", "B.md"]
    assert response.stats.duplicates_removed == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("active", [ML, "/Study/Machine Learning.md", "Study\\Machine Learning.md"])
async def test_active_document_excluded(service, active):
    with pytest.raises(NoMatchesError):
        await service.search("supervised", active_path=active)


@pytest.mark.asyncio
async def test_active_document_included_when_enabled(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(search_current_file=True))
    response = await service.search("supervised", active_path=ML)
    assert {r.document.path for r in response.results} == {ML}


@pytest.mark.asyncio
async def test_ignored_folders_skipped(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(folders_to_ignore="Kitchen/\n"))
    with pytest.raises(NoMatchesError):
        await service.search("pasta")


@pytest.mark.asyncio
async def test_unindexed_documents_contribute_nothing(fake_source):
    fake_source.add("Inbox/new.md", "# Machine learning notes", indexed=False)

    response = await SimilaritySearchService(fake_source).search("machine learning")

    assert "Inbox/new.md" not in {r.document.path for r in response.results}
    assert response.stats.documents_unindexed == 1


@pytest.mark.asyncio
async def test_unreadable_document_skipped(fake_source):
    fake_source.failing_reads.add(PASTA)

    response = await SimilaritySearchService(fake_source).search("machine learning")

    assert len(response.results) == 3
    assert response.stats.documents_skipped == 1
    assert response.stats.documents_scanned == 1


@pytest.mark.asyncio
async def test_concurrent_search_rejected_as_busy(fake_source):
    source = BlockingSource({ML: fake_source.content(ML)})
    service = SimilaritySearchService(source)

    running = asyncio.create_task(service.search("machine"))
    await source.entered.wait()
    assert service.is_searching

    with pytest.raises(SearchBusyError):
        await service.search("machine")

    source.release.set()
    response = await running
    assert response.results
    assert not service.is_searching


@pytest.mark.asyncio
async def test_slow_search_triggers_progress_notice(fake_source):
    source = BlockingSource({ML: fake_source.content(ML)})
    notices = []
    service = SimilaritySearchService(
        source,
        SearchSettings(progress_notice_delay=0.0),
        on_slow_search=notices.append,
    )

    running = asyncio.create_task(service.search(" machine "))
    await source.entered.wait()
    await asyncio.sleep(0.01)
    source.release.set()
    await running

    assert notices == ["machine"]


@pytest.mark.asyncio
async def test_fast_search_cancels_progress_notice(fake_source):
    notices = []
    service = SimilaritySearchService(
        fake_source,
        SearchSettings(progress_notice_delay=0.05),
        on_slow_search=notices.append,
    )

    await service.search("machine")
    await asyncio.sleep(0.1)

    assert notices == []


@pytest.mark.asyncio
async def test_update_settings_rebuilds_stopwords(service):
    await service.search("the cat")
    service.update_settings(SearchSettings(custom_stopwords=["cat"]))

    assert "cat" in service.stopwords
    with pytest.raises(QueryAllStopwordsError):
        await service.search("the cat")


@pytest.mark.asyncio
async def test_disabling_default_stopwords(fake_source):
    service = SimilaritySearchService(fake_source, SearchSettings(use_default_stopwords=False))
    response = await service.search("the cat")
    assert response.query_tokens == frozenset({"the", "cat"})


def test_format_wikilink():
    assert format_wikilink("Pasta#^x7f2a1", "the cat") == "[[Pasta#^x7f2a1|the cat]]"
    assert format_wikilink("Pasta", "  ") == "[[Pasta]]"


def test_build_link_path(service):
    document = Document(path=ML)
    assert service.build_link_path(document) == "Machine Learning"
    assert service.build_link_path(document, "^sup01") == "Machine Learning#^sup01"


@pytest.mark.asyncio
async def test_build_wikilink_for_heading(service):
    response = await service.search("machine learning")
    wikilink = await service.build_wikilink(response.results[0], "machine learning")
    assert wikilink == "[[Machine Learning#Introduction to Machine Learning|machine learning]]"


@pytest.mark.asyncio
async def test_build_wikilink_materializes_block_anchor(fake_source):
    service = SimilaritySearchService(fake_source, resolver=AnchorResolver(fake_source, id_factory=lambda: "x7f2a1"))
    response = await service.search("the cat")

    wikilink = await service.build_wikilink(response.results[0], "the cat")

    assert wikilink == "[[Pasta#^x7f2a1|the cat]]"
    assert fake_source.writes == [(PASTA, 4, " ^x7f2a1")]

    again = await service.search("the cat")
    assert again.results[0].unit.link_target == "^x7f2a1"
