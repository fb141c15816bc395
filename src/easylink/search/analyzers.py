"""Analyzer utilities for the similarity search stack.

The composable tokenizer/filter design follows Whoosh. Tokenization is kept
deliberately simple: text is lowercased and split on whitespace runs, with no
stemming and no punctuation stripping (``"learning,"`` and ``"learning"`` are
different tokens).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
import re
from typing import Protocol


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class WhitespaceTokenizer:
    """Splits text on runs of whitespace; zero-length fragments never appear."""

    _PATTERN = re.compile(r"\S+", re.UNICODE)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self._PATTERN.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if not token.text.islower():
                token.text = token.text.lower()
            yield token


EN_STOPWORDS = frozenset(
    {
        "i",
        "me",
        "my",
        "myself",
        "we",
        "our",
        "ours",
        "he",
        "him",
        "his",
        "she",
        "her",
        "it",
        "its",
        "they",
        "them",
        "their",
        "what",
        "which",
        "who",
        "this",
        "that",
        "these",
        "those",
        "am",
        "is",
        "are",
        "was",
        "were",
        "be",
        "been",
        "a",
        "an",
        "the",
        "and",
        "but",
        "if",
        "or",
        "as",
        "of",
        "at",
        "by",
        "for",
        "with",
        "to",
        "from",
        "in",
        "out",
        "on",
        "off",
    }
)

KO_STOPWORDS = frozenset(
    {
        "이",
        "가",
        "은",
        "는",
        "을",
        "를",
        "의",
        "에",
        "에서",
        "와",
        "과",
        "도",
        "으로",
        "로",
        "만",
        "뿐",
        "그리고",
        "그래서",
        "그러나",
        "하지만",
        "그",
        "저",
        "것",
        "수",
        "때",
        "곳",
        "들",
    }
)

DEFAULT_STOPWORDS = EN_STOPWORDS | KO_STOPWORDS


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Iterable[str]) -> None:
        self.stopwords = frozenset(stopwords)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


_RAW_PIPELINE = AnalyzerPipeline(WhitespaceTokenizer(), [LowercaseFilter()])


def tokenize(text: str) -> list[str]:
    """Lowercase ``text`` and split it on whitespace runs."""
    return [token.text for token in _RAW_PIPELINE(text)]


def _normalize_stopwords(words: Iterable[str]) -> set[str]:
    return {word.strip().lower() for word in words if word and word.strip()}


class StopwordSet:
    """The effective stopword set: built-in defaults (optional) plus custom words.

    Immutable once built; build a new one when configuration changes.
    """

    def __init__(self, custom: Iterable[str] = (), *, use_defaults: bool = True) -> None:
        words = _normalize_stopwords(custom)
        if use_defaults:
            words |= DEFAULT_STOPWORDS
        self.words = frozenset(words)
        self._pipeline = AnalyzerPipeline(WhitespaceTokenizer(), [LowercaseFilter(), StopFilter(self.words)])

    @classmethod
    def from_settings(cls, settings) -> StopwordSet:
        return cls(settings.custom_stopwords, use_defaults=settings.use_default_stopwords)

    def __contains__(self, token: object) -> bool:
        return token in self.words

    def __len__(self) -> int:
        return len(self.words)

    def is_stopword(self, token: str) -> bool:
        return token in self.words

    def filter_tokens(self, text: str | Iterable[str]) -> frozenset[str]:
        """Tokenize ``text`` and drop stopwords, returning the token set.

        Accepts an already tokenized iterable as well, which makes filtering
        idempotent: filtering a filtered set yields the same set.
        """
        if isinstance(text, str):
            return frozenset(token.text for token in self._pipeline(text))
        return frozenset(token for token in text if token and token not in self.words)
