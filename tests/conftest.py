from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def policy_path() -> Path:
    return FIXTURES_DIR / "supply_chain_policy.yaml"


@pytest.fixture
def catalog_path() -> Path:
    return FIXTURES_DIR / "baseline_catalog.yaml"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of the tests."""
    for name in ("AMPEL_MAPPER_WORKSPACE", "AMPEL_MAPPER_OUTPUT_DIR", "AMPEL_MAPPER_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
