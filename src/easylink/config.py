"""Configuration for easylink using Pydantic and Pydantic Settings.

Two layers:
- ``SearchSettings``: the persisted search configuration (the host stores it as
  JSON with camelCase keys; both spellings are accepted).
- ``Settings``: process-level settings loaded from ``EASYLINK_*`` environment
  variables (logging, default vault location).
"""

from pathlib import Path
from typing import Any, Literal

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SETTINGS_FILE = ".easylink.json"


def _split_lines(value: object) -> list[str]:
    """Normalize a newline-separated string or an iterable into trimmed entries."""

    if value is None or value == "":
        return []

    if isinstance(value, str):
        return [entry.strip() for entry in value.split("\n") if entry.strip()]

    if isinstance(value, (list, tuple, set, frozenset)):
        normalized: list[str] = []
        for item in value:
            if item is None:
                continue
            stripped = str(item).strip()
            if stripped:
                normalized.append(stripped)
        return normalized

    raise ValueError("Expected string, list, tuple, or set for a one-entry-per-line setting")


class SearchSettings(BaseModel):
    """Search configuration with safe defaults."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    folders_to_ignore: list[str] = Field(
        default_factory=list,
        description="Folder path prefixes excluded from the corpus (one per line)",
    )
    max_results: int = Field(default=25, ge=1, description="Maximum number of ranked results returned")
    min_score: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Results scoring below this overlap score are dropped",
    )
    use_default_stopwords: bool = Field(
        default=True,
        description="Ignore built-in English and Korean stopwords",
    )
    custom_stopwords: list[str] = Field(
        default_factory=list,
        description="Additional words to ignore (one per line)",
    )
    search_current_file: bool = Field(
        default=False,
        description="Include the active document in the corpus",
    )
    min_query_length: int = Field(default=1, ge=1, description="Minimum trimmed query length in characters")
    all_stopwords_policy: Literal["reject", "raw_tokens"] = Field(
        default="reject",
        description="reject: fail queries made only of stopwords; raw_tokens: search their unfiltered tokens",
    )
    progress_notice_delay: float = Field(
        default=0.5,
        ge=0.0,
        description="Seconds before a still-running search triggers the progress notice",
    )

    @field_validator("folders_to_ignore", "custom_stopwords", mode="before")
    @classmethod
    def _split_entries(cls, value: object) -> list[str]:
        return _split_lines(value)


def load_search_settings(path: Path) -> SearchSettings:
    """Load search settings from JSON, merging stored values over the defaults.

    A missing file yields the defaults.

    Raises:
        pydantic.ValidationError: the stored values are invalid
        orjson.JSONDecodeError: the file is not valid JSON
    """
    if not path.exists():
        return SearchSettings()
    data: Any = orjson.loads(path.read_bytes())
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return SearchSettings.model_validate(data)


def save_search_settings(settings: SearchSettings, path: Path) -> None:
    """Persist search settings as JSON with camelCase keys."""
    payload = settings.model_dump(by_alias=True)
    path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS))


class Settings(BaseSettings):
    """Process configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EASYLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")
    vault_path: Path | None = Field(default=None, description="Default vault root for the command line")
    settings_file: str = Field(
        default=DEFAULT_SETTINGS_FILE,
        description="Search settings file, relative to the vault root unless absolute",
    )

    def resolve_settings_file(self, vault_root: Path) -> Path:
        """Return the search settings path for ``vault_root``."""
        candidate = Path(self.settings_file).expanduser()
        if candidate.is_absolute():
            return candidate
        return vault_root / candidate
