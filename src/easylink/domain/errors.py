"""Error taxonomy for similarity search and anchor resolution.

Search and resolve failures are raised to the caller as distinct exception
types so the user-facing layer can pick the right message. Per-document read
failures (:class:`CorpusReadError`) are raised by document sources and
recovered by the corpus scan.
"""


class EasyLinkError(Exception):
    """Base class for all easylink errors."""


class SearchError(EasyLinkError):
    """A search did not produce results."""

    user_message = "Search failed."


class EmptyQueryError(SearchError):
    """The trimmed query is empty or shorter than the minimum length."""

    def __init__(self, min_length: int = 1) -> None:
        self.min_length = min_length
        plural = "" if min_length == 1 else "s"
        self.user_message = f"Please select at least {min_length} character{plural}."
        super().__init__(self.user_message)


class QueryAllStopwordsError(SearchError):
    """The query has content but every token is a stopword."""

    user_message = "Query contains only common words. Please try a more specific query."

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(self.user_message)


class SearchBusyError(SearchError):
    """A search was requested while another one is still running."""

    user_message = "A search is already in progress."

    def __init__(self) -> None:
        super().__init__(self.user_message)


class NoMatchesError(SearchError):
    """The scan completed without a single matching unit."""

    user_message = "No similar content found."

    def __init__(self) -> None:
        super().__init__(self.user_message)


class BelowThresholdError(SearchError):
    """Matches existed but all of them scored below the minimum score."""

    user_message = "Found results, but they were below your minimum score setting."

    def __init__(self, candidate_count: int, best_score: float, min_score: float) -> None:
        self.candidate_count = candidate_count
        self.best_score = best_score
        self.min_score = min_score
        super().__init__(
            f"{self.user_message} ({candidate_count} candidates, best {best_score:.2f} < {min_score:.2f})"
        )


class ResolveError(EasyLinkError):
    """A link target could not be produced for a chosen result."""

    user_message = "Could not create a link to the selected block."


class AnchorWriteFailedError(ResolveError):
    """Persisting a generated block anchor into its document failed."""

    def __init__(self, path: str, line: int, reason: str) -> None:
        self.path = path
        self.line = line
        self.reason = reason
        super().__init__(f"Failed to write block anchor to {path}:{line + 1}: {reason}")


class CorpusReadError(EasyLinkError):
    """A document's content or structural metadata could not be retrieved."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read {path}: {reason}")
