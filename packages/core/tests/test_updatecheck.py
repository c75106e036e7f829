"""Tests for the background release check."""

import threading
from concurrent.futures import Future

import pytest

from prinbox_core import updatecheck
from prinbox_core.updatecheck import Semver, check_once, is_newer, parse_semver_tag, try_receive


class TestParseSemverTag:
    @pytest.mark.parametrize(
        "tag, expected",
        [
            ("v1.2.3", Semver(1, 2, 3)),
            (" v0.10.0 ", Semver(0, 10, 0)),
            ("v1.2.3-rc.1", Semver(1, 2, 3)),
            ("v1.2.3+build.5", Semver(1, 2, 3)),
        ],
    )
    def test_valid(self, tag, expected):
        assert parse_semver_tag(tag) == expected

    @pytest.mark.parametrize("tag", ["1.2.3", "v1.2", "v1.2.3.4", "v01.2.3", "v1.x.3", "v-1.2.3", "", "dev"])
    def test_invalid(self, tag):
        assert parse_semver_tag(tag) is None


class TestIsNewer:
    def test_newer(self):
        assert is_newer("v1.3.0", "v1.2.9")
        assert is_newer("v2.0.0", "v1.99.99")

    def test_same_or_older(self):
        assert not is_newer("v1.2.3", "v1.2.3")
        assert not is_newer("v1.2.2", "v1.2.3")

    def test_unparsable_is_never_newer(self):
        assert not is_newer("latest", "v1.0.0")
        assert not is_newer("v2.0.0", "nightly")


class TestCheckOnce:
    def test_dev_version_skips_network(self, mocker):
        fetch = mocker.patch("prinbox_core.updatecheck.latest_release_tag")
        assert check_once("dev") is None
        assert check_once("") is None
        fetch.assert_not_called()

    def test_message_when_newer(self, mocker):
        mocker.patch("prinbox_core.updatecheck.latest_release_tag", return_value="v0.2.0")
        message = check_once("0.1.0")
        assert "v0.2.0" in message
        assert "current v0.1.0" in message

    def test_no_message_when_current(self, mocker):
        mocker.patch("prinbox_core.updatecheck.latest_release_tag", return_value="v0.1.0")
        assert check_once("0.1.0") is None


class TestTryReceive:
    def test_none_future(self):
        assert try_receive(None) is None

    def test_pending_future_does_not_block(self):
        assert try_receive(Future()) is None

    def test_finished_future(self):
        future = Future()
        future.set_result("Update available")
        assert try_receive(future) == "Update available"

    def test_failed_future(self):
        future = Future()
        future.set_exception(RuntimeError("offline"))
        assert try_receive(future) is None

    def test_cancelled_future(self):
        future = Future()
        future.cancel()
        assert try_receive(future) is None


class TestStart:
    def test_result_delivered_through_future(self, mocker):
        mocker.patch("prinbox_core.updatecheck.check_once", return_value="Update available: v9.9.9")
        future = updatecheck.start("0.1.0")
        assert future.result(timeout=5) == "Update available: v9.9.9"
        assert try_receive(future) == "Update available: v9.9.9"

    def test_failure_yields_no_message(self, mocker):
        mocker.patch("prinbox_core.updatecheck.check_once", side_effect=OSError("offline"))
        future = updatecheck.start("0.1.0")
        with pytest.raises(OSError):
            future.result(timeout=5)
        assert try_receive(future) is None

    def test_runs_on_daemon_thread(self, mocker):
        started = threading.Event()
        release = threading.Event()

        def slow_check(version, timeout):
            started.set()
            release.wait(5)
            return None

        mocker.patch("prinbox_core.updatecheck.check_once", side_effect=slow_check)
        future = updatecheck.start("0.1.0")
        assert started.wait(5)
        assert try_receive(future) is None
        assert any(t.name == "prinbox-update-check" and t.daemon for t in threading.enumerate())
        release.set()
        future.result(timeout=5)
