"""Similarity search orchestration layer.

Combines query preparation, the corpus scan, ranking and anchor resolution
behind one service object. Documents are visited one at a time in the order
the document source returns them; every read is awaited, so a scan yields to
the event loop between documents but never runs two documents concurrently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
import time

from easylink.adapters.document_source import AbstractDocumentSource
from easylink.config import SearchSettings
from easylink.domain.errors import (
    BelowThresholdError,
    CorpusReadError,
    EmptyQueryError,
    NoMatchesError,
    QueryAllStopwordsError,
    SearchBusyError,
    SearchError,
)
from easylink.domain.model import Document, SearchResult
from easylink.domain.search import SearchResponse, SearchStats
from easylink.observability.context import update_trace_context
from easylink.observability.metrics import CORPUS_READ_FAILURES, SEARCH_LATENCY, SEARCH_OUTCOMES, track_latency
from easylink.observability.tracing import create_span
from easylink.search.analyzers import StopwordSet, tokenize
from easylink.search.extractor import extract_units
from easylink.search.query import PreparedQuery, prepare_query
from easylink.search.ranking import rank_candidates
from easylink.search.scoring import score
from easylink.service_layer.anchor_resolver import AnchorResolver
from easylink.utils.paths import is_ignored, normalize_folders, normalize_path


logger = logging.getLogger(__name__)

_OUTCOME_LABELS: dict[type[SearchError], str] = {
    EmptyQueryError: "empty_query",
    QueryAllStopwordsError: "all_stopwords",
    SearchBusyError: "busy",
    NoMatchesError: "no_matches",
    BelowThresholdError: "below_threshold",
}


def format_wikilink(link_path: str, alias: str = "") -> str:
    """Compose ``[[link_path|alias]]`` (or ``[[link_path]]`` without an alias)."""
    alias = alias.strip()
    if alias:
        return f"[[{link_path}|{alias}]]"
    return f"[[{link_path}]]"


class SimilaritySearchService:
    """Finds the passages most similar to a query and turns them into link targets.

    Only one search may run at a time per service instance; a second request
    while one is active fails fast with :class:`SearchBusyError`.
    """

    def __init__(
        self,
        source: AbstractDocumentSource,
        settings: SearchSettings | None = None,
        *,
        resolver: AnchorResolver | None = None,
        on_slow_search: Callable[[str], object] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            source: Document enumeration, metadata, content and write primitive
            settings: Search configuration (defaults when omitted)
            resolver: Anchor resolver sharing ``source`` (created when omitted)
            on_slow_search: Called with the trimmed query when a search is still
                running after ``settings.progress_notice_delay`` seconds
        """
        self.source = source
        self.resolver = resolver or AnchorResolver(source)
        self.on_slow_search = on_slow_search
        self._searching = False
        self.update_settings(settings or SearchSettings())

    @property
    def settings(self) -> SearchSettings:
        return self._settings

    @property
    def stopwords(self) -> StopwordSet:
        return self._stopwords

    @property
    def is_searching(self) -> bool:
        return self._searching

    def update_settings(self, settings: SearchSettings) -> None:
        """Swap the configuration and rebuild the effective stopword set.

        A running search keeps the snapshot it started with.
        """
        self._settings = settings
        self._stopwords = StopwordSet.from_settings(settings)

    async def search(self, raw_query: str, *, active_path: str | None = None) -> SearchResponse:
        """Search the corpus for units similar to ``raw_query``.

        Args:
            raw_query: The user's selection
            active_path: Path of the currently active document, excluded unless
                ``search_current_file`` is enabled

        Returns:
            SearchResponse with at least one result

        Raises:
            SearchBusyError: another search is in progress
            EmptyQueryError: query too short after trimming
            QueryAllStopwordsError: query made only of stopwords (``reject`` policy)
            NoMatchesError: no unit matched any query token
            BelowThresholdError: matches existed but all scored below ``min_score``
        """
        if self._searching:
            SEARCH_OUTCOMES.labels(outcome="busy").inc()
            raise SearchBusyError()

        self._searching = True
        settings, stopwords = self._settings, self._stopwords
        notice = self._schedule_progress_notice(raw_query.strip(), settings.progress_notice_delay)
        labels = {"outcome": "error"}
        try:
            with track_latency(SEARCH_LATENCY, labels), create_span("easylink.search") as span:
                try:
                    response = await self._run(raw_query, settings, stopwords, active_path)
                except SearchError as exc:
                    labels["outcome"] = _OUTCOME_LABELS.get(type(exc), "error")
                    raise
                labels["outcome"] = "ok"
                span.set_attribute("easylink.results", len(response.results))
                span.set_attribute("easylink.documents_scanned", response.stats.documents_scanned)
                return response
        finally:
            SEARCH_OUTCOMES.labels(**labels).inc()
            if notice is not None:
                notice.cancel()
            self._searching = False

    def _schedule_progress_notice(self, query: str, delay: float) -> asyncio.TimerHandle | None:
        if self.on_slow_search is None:
            return None
        return asyncio.get_running_loop().call_later(delay, self.on_slow_search, query)

    async def _run(
        self,
        raw_query: str,
        settings: SearchSettings,
        stopwords: StopwordSet,
        active_path: str | None,
    ) -> SearchResponse:
        start = time.perf_counter()
        query = prepare_query(
            raw_query,
            stopwords,
            min_length=settings.min_query_length,
            all_stopwords_policy=settings.all_stopwords_policy,
        )
        update_trace_context(query=query.text)
        if not query.filtered:
            logger.debug("Query %r is all stopwords; searching its raw tokens", query.text)

        candidates, counters = await self._scan(query, settings, stopwords, active_path)
        if not candidates:
            raise NoMatchesError()

        ranked = rank_candidates(candidates, settings.min_score, settings.max_results)
        if not ranked.results:
            raise BelowThresholdError(ranked.candidate_count, ranked.best_score, settings.min_score)

        stats = SearchStats(
            **counters,
            candidates=ranked.candidate_count,
            duplicates_removed=ranked.duplicates_removed,
            below_threshold=ranked.below_threshold,
            search_time=time.perf_counter() - start,
        )
        logger.info(
            "Search returned %d results from %d candidates across %d documents (%.3fs)",
            len(ranked.results),
            stats.candidates,
            stats.documents_scanned,
            stats.search_time,
        )
        return SearchResponse(query=query.text, query_tokens=query.tokens, results=ranked.results, stats=stats)

    async def _scan(
        self,
        query: PreparedQuery,
        settings: SearchSettings,
        stopwords: StopwordSet,
        active_path: str | None,
    ) -> tuple[list[SearchResult], dict[str, int]]:
        """Score every unit of every eligible document; keep units with at least one match."""
        ignored = normalize_folders(settings.folders_to_ignore)
        active = normalize_path(active_path) if active_path else None
        if query.filtered:
            analyze = stopwords.filter_tokens
        else:
            def analyze(text: str) -> frozenset[str]:
                return frozenset(tokenize(text))

        counters = {"documents_scanned": 0, "documents_skipped": 0, "documents_unindexed": 0}
        candidates: list[SearchResult] = []
        for document in await self.source.list_documents():
            if active and not settings.search_current_file and normalize_path(document.path) == active:
                continue
            if ignored and is_ignored(document.path, ignored):
                continue

            stage = "structure"
            try:
                structure = await self.source.get_structure(document)
                if structure is None:
                    counters["documents_unindexed"] += 1
                    continue
                stage = "content"
                content = await self.source.read(document)
            except CorpusReadError as e:
                logger.warning("Skipping %s: %s", document.path, e.reason)
                CORPUS_READ_FAILURES.labels(stage=stage).inc()
                counters["documents_skipped"] += 1
                continue

            counters["documents_scanned"] += 1
            for unit in extract_units(content, structure):
                value = score(analyze(unit.text), query.tokens)
                if value > 0:
                    candidates.append(SearchResult(document=document, unit=unit, score=value))

        return candidates, counters

    async def resolve_link_target(self, result: SearchResult) -> str:
        """Return a stable link target for ``result``, writing a block anchor if needed.

        Raises:
            AnchorWriteFailedError: the anchor could not be persisted
        """
        with create_span("easylink.resolve_link_target", attributes={"easylink.document": result.document.path}):
            return await self.resolver.resolve(result)

    def build_link_path(self, document: Document, link_target: str = "") -> str:
        """Compose the caller-facing reference: ``link_text`` plus ``#target`` when present."""
        link_path = self.source.link_text(document)
        if link_target:
            return f"{link_path}#{link_target}"
        return link_path

    async def build_wikilink(self, result: SearchResult, alias: str = "") -> str:
        """Resolve ``result`` and format the wikilink to insert at the selection."""
        target = await self.resolve_link_target(result)
        return format_wikilink(self.build_link_path(result.document, target), alias)
