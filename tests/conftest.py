"""pytest configuration for the signage config API tests."""

import os
import tempfile

import pytest

# Point the module-level engine at a throwaway database before anything
# imports signage_api.db.
_TMP_DIR = tempfile.mkdtemp(prefix="signage-tests-")
os.environ["SIGNAGE_DATABASE_URL"] = f"sqlite:///{_TMP_DIR}/signage.db"
os.environ["SIGNAGE_ADMIN_TOKEN"] = ""

from signage_api.db import Base, build_engine, build_session_factory  # noqa: E402
from signage_api.models import device_config  # noqa: E402,F401
from signage_api.services.config_store import ConfigStore  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def db_engine(tmp_path):
    bound = build_engine(f"sqlite:///{tmp_path / 'store.db'}")
    Base.metadata.create_all(bind=bound)
    yield bound
    bound.dispose()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(db_engine, clock):
    return ConfigStore(session_factory=build_session_factory(db_engine), clock=clock)
