"""Value objects describing a completed search."""

from pydantic import BaseModel, ConfigDict, Field

from easylink.domain.model import SearchResult


class SearchStats(BaseModel):
    """Counters collected while scanning the corpus."""

    model_config = ConfigDict(frozen=True)

    documents_scanned: int = 0
    documents_skipped: int = 0
    documents_unindexed: int = 0
    candidates: int = 0
    duplicates_removed: int = 0
    below_threshold: int = 0
    search_time: float = 0.0


class SearchResponse(BaseModel):
    """Ranked results for one query, plus the token set they were scored against."""

    model_config = ConfigDict(frozen=True)

    query: str
    query_tokens: frozenset[str] = Field(default_factory=frozenset)
    results: list[SearchResult]
    stats: SearchStats = Field(default_factory=SearchStats)
