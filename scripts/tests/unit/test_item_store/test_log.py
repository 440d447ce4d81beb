"""Tests for the store logging helpers."""

import pytest

from item_store import Storage, conf, log
from tests.test_utils import Worker


class TestStoreLog:
    def test_writes_timestamped_lines(self, isolated_log):
        log.store_log("hello store")
        lines = isolated_log.read_text(encoding="utf-8").splitlines()
        assert lines[-1].startswith("[")
        assert lines[-1].endswith("] hello store")

    def test_disabled(self, isolated_log, monkeypatch):
        monkeypatch.setattr(log, "LOG", False)
        log.store_log("silent")
        assert not isolated_log.exists()

    def test_stderr_echo(self, isolated_log, monkeypatch, capsys):
        monkeypatch.setattr(log, "LOG_TO_STDERR", True)
        log.store_log("echoed")
        assert "echoed" in capsys.readouterr().err

    def test_print_and_clear(self, isolated_log, capsys):
        log.store_log_print()
        assert "does not exist" in capsys.readouterr().out
        log.store_log("line")
        log.store_log_print()
        assert "line" in capsys.readouterr().out
        log.store_log_clear()
        assert not isolated_log.exists()

    def test_registration_is_logged(self, isolated_log, storage):
        assert "Registered type 'Worker' -> Worker" in isolated_log.read_text(encoding="utf-8")


class TestUnwritableLog:
    @pytest.fixture
    def blocked_log(self, tmp_path, monkeypatch):
        """LOG_FILE whose parent directory is a regular file."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        log_file = blocker / "store.log"
        monkeypatch.setattr(conf, "LOG_FILE", log_file)
        return log_file

    def test_store_log_does_not_raise(self, blocked_log):
        log.store_log("nowhere to go")
        assert not blocked_log.exists()

    def test_stderr_echo_still_works(self, blocked_log, monkeypatch, capsys):
        monkeypatch.setattr(log, "LOG_TO_STDERR", True)
        log.store_log("still echoed")
        assert "still echoed" in capsys.readouterr().err

    def test_register_and_create(self, blocked_log):
        store = Storage()
        assert store.register_type("Worker", Worker)
        worker = store.create_item("Worker", "w")
        assert store.get_item_by_name("Worker", "w") is worker
        assert list(store.get_items("Worker")) == [worker]

    def test_read_and_write(self, blocked_log):
        store = Storage()
        store.register_type("Worker", Worker)
        store.create_item("Worker", "w").Age = 7
        text = store.to_xml()
        store.from_xml(text)
        assert store.get_item_by_name("Worker", "w").Age == 7
