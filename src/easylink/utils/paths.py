"""Vault path helpers: normalization and folder exclusion."""

from collections.abc import Iterable
import re
import unicodedata


_SLASH_RUN = re.compile(r"/+")


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path.

    Backslashes become forward slashes, slash runs collapse, leading and
    trailing slashes are removed and the result is NFC-normalized. The vault
    root normalizes to ``"/"``.

    Example:
        >>> normalize_path("/Meta//Templates/")
        'Meta/Templates'
    """
    cleaned = _SLASH_RUN.sub("/", path.replace("\\", "/").replace("\u00a0", " ")).strip("/")
    if not cleaned:
        return "/"
    return unicodedata.normalize("NFC", cleaned)


def normalize_folders(folders: Iterable[str]) -> list[str]:
    """Normalize ignored-folder entries, dropping blanks and duplicates (order kept)."""
    seen: dict[str, None] = {}
    for folder in folders:
        if folder and folder.strip():
            seen.setdefault(normalize_path(folder.strip()), None)
    return list(seen)


def is_ignored(path: str, ignored_folders: Iterable[str]) -> bool:
    """Check whether ``path`` starts with any of the (normalized) ignored folder prefixes.

    This is a plain string prefix test, matching how the host application
    filters folders: ``"Templates"`` also excludes ``"Templates2/note.md"``.
    """
    normalized = normalize_path(path)
    return any(normalized.startswith(folder) for folder in ignored_folders)
