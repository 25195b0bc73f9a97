"""Tests for mono_publish.models."""

from __future__ import annotations

from mono_publish.models import (
    BatchReport,
    Credentials,
    ReleaseOutcome,
    Version,
)


class TestVersion:
    def test_stable_str(self) -> None:
        assert str(Version(major=1, minor=2, patch=3)) == "1.2.3"

    def test_prerelease_str(self) -> None:
        v = Version(major=1, minor=2, patch=3, prerelease_label="rc", prerelease_number=2)
        assert str(v) == "1.2.3-rc.2"
        assert v.core == "1.2.3"


def test_credentials_hide_password() -> None:
    creds = Credentials(username="alice", password="s3cret", email="a@example.com")
    assert "s3cret" not in repr(creds)
    assert creds.password.get_secret_value() == "s3cret"


class TestBatchReport:
    def test_empty_is_ok(self) -> None:
        assert BatchReport().ok

    def test_failed_package(self) -> None:
        report = BatchReport(
            outcomes=[ReleaseOutcome(name="a", ok=False, stage="tagging", error="x")]
        )
        assert not report.ok

    def test_failed_aggregate(self) -> None:
        report = BatchReport(
            outcomes=[ReleaseOutcome(name="a", ok=True, stage="done")], aggregate_ok=False
        )
        assert not report.ok
