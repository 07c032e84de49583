from pathlib import Path

import pytest

from record_keeper.settings import Settings


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "database.json"


@pytest.fixture
def make_settings(data_file: Path):
    def _make(service: str = "tasks", **overrides: object) -> Settings:
        values: dict[str, object] = {
            "SERVICE": service,
            "DATA_FILE": str(data_file),
            "FOREX_FETCH_ON_STARTUP": False,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
