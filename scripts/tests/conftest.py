"""Pytest fixtures for item store tests."""

import pytest

from item_store import Storage, conf
from tests.test_utils import Dept, Gadget, Manager, Worker


@pytest.fixture(autouse=True)
def isolated_log(tmp_path, monkeypatch):
    """Send store.log into the test's tmp dir instead of the user's home."""
    log_file = tmp_path / "logs" / "store.log"
    monkeypatch.setattr(conf, "LOG_FILE", log_file)
    yield log_file


@pytest.fixture
def storage():
    """Store with the common test record classes registered."""
    store = Storage()
    assert store.register_type("Worker", Worker)
    assert store.register_type("Manager", Manager)
    assert store.register_type("Dept", Dept)
    assert store.register_type("Gadget", Gadget)
    return store
