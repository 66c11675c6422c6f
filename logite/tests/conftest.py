"""Shared fixtures for Logite tests."""

from pathlib import Path

import pytest

from logite.logger import Logite


# A fixed wall-clock second well after the epoch.
NOW = 1_700_000_000


class FakeClock:
    """Settable time source."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "logite.db"


@pytest.fixture
def logite(db_path: Path, clock: FakeClock):
    log = Logite(path=db_path, level="debug", clock=clock)
    yield log
    log.close()
