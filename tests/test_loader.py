"""
Tests for a full key loading run.

Uses an in-memory KeySource; the filesystem is a tmp_path.
Covers: first install, no-op runs (no write, no mtime change), 404 as
an empty listing, fatal errors leaving the file untouched, dry runs,
forced writes, and audit events.
"""

import logging
from typing import List, Optional
from unittest.mock import patch

import pytest

from keyloader.exceptions import KeyFileError, NetworkError, NotFoundError, RateLimitedError
from keyloader.loader import LoadReport, load_keys
from keyloader.remote.source import KeySource

RSA_DATA = "AAAAB3NzaC1yc2EAAAADAQABAAABAQCarT/me5sWxY9Tizcw"
ED25519_DATA = "AAAAC3NzaC1lZDI1NTE5AAAAIOMqqnkVzrm0SdG6UOoqKLsabgH5C9okWi0dh2l9GKJl"


class FakeKeySource(KeySource):
    """Serves a fixed listing, or raises a fixed error."""

    def __init__(self, lines: Optional[List[str]] = None, error: Optional[Exception] = None):
        super().__init__("fake")
        self.lines = lines or []
        self.error = error
        self.calls: List[str] = []

    def keys_url(self, username: str) -> str:
        return f"memory://{username}.keys"

    def fetch(self, username: str) -> List[str]:
        self.calls.append(username)
        if self.error is not None:
            raise self.error
        return list(self.lines)


@pytest.fixture
def target(tmp_path):
    return tmp_path / ".ssh" / "authorized_keys"


# ===================================================================
# Successful runs
# ===================================================================

class TestLoadKeys:
    def test_first_install(self, target):
        source = FakeKeySource([f"ssh-rsa {RSA_DATA} comment1"])
        report = load_keys("octocat", target, source)

        assert isinstance(report, LoadReport)
        assert report.written is True
        assert len(report.merge.added) == 1
        assert target.read_text() == f"ssh-rsa {RSA_DATA} comment1\n"
        assert source.calls == ["octocat"]

    def test_existing_key_new_comment_no_write(self, target):
        target.parent.mkdir()
        target.write_text(f"ssh-rsa {RSA_DATA} old-comment\n")
        before = target.stat().st_mtime_ns

        source = FakeKeySource([f"ssh-rsa {RSA_DATA} new-comment"])
        with patch("keyloader.loader.write_atomic") as mock_write:
            report = load_keys("octocat", target, source)

        mock_write.assert_not_called()
        assert report.written is False
        assert report.merge.added == []
        assert report.merge.already_present_count == 1
        assert target.read_text() == f"ssh-rsa {RSA_DATA} old-comment\n"
        assert target.stat().st_mtime_ns == before

    def test_second_run_is_noop(self, target):
        source = FakeKeySource([
            f"ssh-rsa {RSA_DATA} a",
            f"ssh-ed25519 {ED25519_DATA} b",
        ])
        first = load_keys("octocat", target, source)
        content = target.read_bytes()

        second = load_keys("octocat", target, source)
        assert len(first.merge.added) == 2
        assert second.merge.added == []
        assert second.written is False
        assert target.read_bytes() == content

    def test_not_found_is_empty_listing(self, target):
        source = FakeKeySource(error=NotFoundError("HTTP 404"))
        report = load_keys("ghost", target, source)

        assert report.user_found is False
        assert report.merge.added == []
        assert report.written is False
        assert not target.exists()

    def test_empty_listing_creates_nothing(self, target):
        report = load_keys("octocat", target, FakeKeySource([]))
        assert report.written is False
        assert not target.parent.exists()

    def test_report_counts(self, target):
        source = FakeKeySource([f"ssh-rsa {RSA_DATA}", "junk", ""])
        report = load_keys("octocat", target, source)
        assert report.remote_count == 3
        assert report.merge.skipped_invalid_count == 1
        data = report.to_dict()
        assert data["username"] == "octocat"
        assert data["provider"] == "fake"
        assert data["path"] == str(target)
        assert data["written"] is True
        assert len(data["added"]) == 1


# ===================================================================
# Dry run and force
# ===================================================================

class TestWriteModes:
    def test_dry_run_never_writes(self, target):
        source = FakeKeySource([f"ssh-rsa {RSA_DATA}"])
        report = load_keys("octocat", target, source, dry_run=True)
        assert report.dry_run is True
        assert report.written is False
        assert len(report.merge.added) == 1
        assert not target.exists()

    def test_force_rewrites_unchanged_file(self, target):
        target.parent.mkdir()
        target.write_text(f"ssh-rsa {RSA_DATA} x")

        report = load_keys("octocat", target, FakeKeySource([f"ssh-rsa {RSA_DATA}"]), force=True)
        assert report.written is True
        assert report.merge.added == []
        # Force applies the trailing newline normalization.
        assert target.read_text() == f"ssh-rsa {RSA_DATA} x\n"

    def test_force_and_dry_run(self, target):
        report = load_keys("octocat", target, FakeKeySource([]), force=True, dry_run=True)
        assert report.written is False
        assert not target.exists()


# ===================================================================
# Fatal errors
# ===================================================================

class TestFatalErrors:
    @pytest.mark.parametrize("error", [
        NetworkError("connection refused"),
        RateLimitedError("slow down", retry_after="30"),
    ])
    def test_remote_errors_propagate_without_write(self, target, error):
        target.parent.mkdir()
        target.write_text("# untouched\n")

        with patch("keyloader.loader.write_atomic") as mock_write:
            with pytest.raises(type(error)):
                load_keys("octocat", target, FakeKeySource(error=error))

        mock_write.assert_not_called()
        assert target.read_text() == "# untouched\n"

    def test_unreadable_target(self, tmp_path):
        with pytest.raises(KeyFileError):
            load_keys("octocat", tmp_path, FakeKeySource([f"ssh-rsa {RSA_DATA}"]))


# ===================================================================
# Audit events
# ===================================================================

class TestAuditEvents:
    def _events(self, caplog):
        return [
            record.msg["event"]
            for record in caplog.records
            if record.name == "keyloader.audit"
        ]

    def test_written_event(self, target, caplog):
        caplog.set_level(logging.DEBUG, logger="keyloader")
        load_keys("octocat", target, FakeKeySource([f"ssh-ed25519 {ED25519_DATA}"]))
        assert self._events(caplog) == [
            "keys_fetched", "keys_merged", "authorized_keys_written",
        ]

    def test_unchanged_event(self, target, caplog):
        caplog.set_level(logging.INFO, logger="keyloader")
        load_keys("octocat", target, FakeKeySource([]))
        assert self._events(caplog) == ["authorized_keys_unchanged"]

    def test_fingerprints_not_blobs(self, target, caplog):
        caplog.set_level(logging.INFO, logger="keyloader")
        load_keys("octocat", target, FakeKeySource([f"ssh-ed25519 {ED25519_DATA}"]))
        written = [
            record.msg for record in caplog.records
            if record.name == "keyloader.audit"
        ][-1]
        assert written["added"] == ["SHA256:+DiY3wvvV6TuJJhbpZisF/zLDA0zPMSvHdkr4UvCOqU"]
        assert ED25519_DATA not in str(written)
