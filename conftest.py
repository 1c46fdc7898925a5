import pytest
from fastapi.testclient import TestClient

from api import app, get_library
from clock import FixedClock
from library import Library


@pytest.fixture
def clock():
    # 2024-01-01T09:00:00Z unless a test moves it
    return FixedClock()


@pytest.fixture
def lib(clock):
    # Fresh in-memory library per test so no state leaks between tests
    lib = Library(clock=clock)
    yield lib
    lib.close()


@pytest.fixture
def client(lib):
    app.dependency_overrides[get_library] = lambda: lib
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_library, None)
