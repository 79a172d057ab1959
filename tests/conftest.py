"""Shared fixtures."""

from datetime import time

import pytest

from shiftcycle.domain.models import Shift
from shiftcycle.storage.memory import InMemoryShiftCatalog


@pytest.fixture
def morning():
    return Shift(id="M", name="Morning", start_time=time(6, 0), end_time=time(14, 0))


@pytest.fixture
def afternoon():
    return Shift(id="A", name="Afternoon", start_time=time(14, 0), end_time=time(22, 0))


@pytest.fixture
def night():
    return Shift(id="N", name="Night", start_time=time(22, 0), end_time=time(6, 0))


@pytest.fixture
def shift_catalog(morning, afternoon, night):
    """Catalog with Morning (M), Afternoon (A) and Night (N) shifts."""
    return InMemoryShiftCatalog([morning, afternoon, night])
