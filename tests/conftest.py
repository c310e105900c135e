"""Shared fixtures."""

import itertools
from collections.abc import Callable

import pytest


@pytest.fixture
def ids() -> Callable[[], str]:
    """Deterministic id factory: id1, id2, ..."""
    counter = itertools.count(1)
    return lambda: f"id{next(counter)}"
