"""Pytest fixtures for outliner tests."""

import logging

import pytest
import structlog

from outliner.config import Settings
from outliner.core import ItemStore
from outliner.reducer import ReducerEngine


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep user config files and OUTLINER_* variables out of every test."""
    for key in (
        "OUTLINER_PROFILE",
        "OUTLINER_POSITION_POLICY",
        "OUTLINER_ORPHAN_POLICY",
        "OUTLINER_VERIFY_INVARIANTS",
        "OUTLINER_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OUTLINER_CONFIG", str(tmp_path / "missing.toml"))
    yield


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo any setup_logging() call a test makes, directly or through replay()."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def store():
    return ItemStore()


@pytest.fixture
def settings():
    return Settings(load_file=False)


@pytest.fixture
def engine(store, settings):
    return ReducerEngine(store=store, settings=settings)


def make_engine(**overrides) -> ReducerEngine:
    return ReducerEngine(settings=Settings(load_file=False, **overrides))


def seed(engine: ReducerEngine) -> ReducerEngine:
    """Build r -> [a, b], a -> [a1], plus a second outline s."""
    engine.apply_all([
        'Outline "r" was created',
        'Item "a" was created inside item "r" at position "0"',
        'Item "b" was created inside item "r" at position "1"',
        'Item "a1" was created inside item "a" at position "0"',
        'Outline "s" was created',
    ])
    return engine


@pytest.fixture
def seeded(engine):
    """Engine holding r -> [a, b], a -> [a1], and an empty outline s."""
    return seed(engine)
