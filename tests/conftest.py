"""Pytest configuration for inikio tests."""

import pytest

from dsl_fixtures import Crashed, Finished
from inikio import ProgramBuilder


@pytest.fixture(autouse=True)
def _no_builder_debug(monkeypatch):
    monkeypatch.delenv("INIKIO_DEBUG", raising=False)


@pytest.fixture
def builder():
    """A plain builder ending in ``Finished`` that re-raises errors."""
    return ProgramBuilder(Finished)


@pytest.fixture
def catching_builder():
    """A plain builder mapping uncaught errors to ``Crashed``."""
    return ProgramBuilder(Finished, on_error=Crashed)
