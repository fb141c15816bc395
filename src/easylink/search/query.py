"""Query preparation: trimming, precondition checks and stopword filtering."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from easylink.domain.errors import EmptyQueryError, QueryAllStopwordsError
from easylink.search.analyzers import StopwordSet, tokenize


AllStopwordsPolicy = Literal["reject", "raw_tokens"]


class PreparedQuery(BaseModel):
    """Value object for an analyzed query.

    ``filtered`` is False when the ``raw_tokens`` fallback replaced an
    all-stopword token set with the unfiltered query tokens; unit token sets
    must then be built without stopword filtering as well.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    tokens: frozenset[str]
    filtered: bool = True


def prepare_query(
    raw_query: str,
    stopwords: StopwordSet,
    *,
    min_length: int = 1,
    all_stopwords_policy: AllStopwordsPolicy = "reject",
) -> PreparedQuery:
    """Trim and tokenize ``raw_query`` into the token set used for scoring.

    Raises:
        EmptyQueryError: trimmed query is empty or shorter than ``min_length``
        QueryAllStopwordsError: every token is a stopword and the policy is ``reject``
    """
    text = raw_query.strip()
    if not text or len(text) < min_length:
        raise EmptyQueryError(min_length)

    tokens = stopwords.filter_tokens(text)
    if tokens:
        return PreparedQuery(text=text, tokens=tokens)

    if all_stopwords_policy == "raw_tokens":
        return PreparedQuery(text=text, tokens=frozenset(tokenize(text)), filtered=False)
    raise QueryAllStopwordsError(text)
