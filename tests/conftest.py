"""Shared test fixtures and configuration."""

from pathlib import Path

import pytest

from easylink.adapters.document_source import FakeDocumentSource


ML_NOTE = """---
tags: [study]
---
# Introduction to Machine Learning

Machine learning builds models from data.

## Supervised methods

Regression and classification are supervised learning tasks.
Labels guide the training. ^sup01

- neural networks
- decision trees
"""

COOKING_NOTE = """# Pasta night

Boil water, add salt, cook the pasta.

The cat watched the pot boil.
"""


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep EASYLINK_* variables from the developer's shell out of tests."""
    for key in ("EASYLINK_LOG_LEVEL", "EASYLINK_LOG_JSON", "EASYLINK_VAULT_PATH", "EASYLINK_SETTINGS_FILE"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_source() -> FakeDocumentSource:
    return FakeDocumentSource(
        {
            "Study/Machine Learning.md": ML_NOTE,
            "Kitchen/Pasta.md": COOKING_NOTE,
        }
    )


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    (root / "Study").mkdir(parents=True)
    (root / "Kitchen").mkdir()
    (root / ".obsidian").mkdir()
    (root / "Study" / "Machine Learning.md").write_text(ML_NOTE, encoding="utf-8")
    (root / "Kitchen" / "Pasta.md").write_text(COOKING_NOTE, encoding="utf-8")
    (root / ".obsidian" / "workspace.md").write_text("# machine learning", encoding="utf-8")
    (root / "Study" / "image.png").write_bytes(b"\x89PNG")
    return root
