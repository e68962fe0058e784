"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON, plain and rich payload rendering
- print_table in all three modes
- Output file redirection
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from punchclock import output as output_module
from punchclock.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture
def non_tty(monkeypatch):
    """Simulate a non-TTY stdout."""
    monkeypatch.setattr("punchclock.output._is_tty", lambda: False)


@pytest.fixture
def tty(monkeypatch):
    """Simulate a TTY stdout."""
    monkeypatch.setattr("punchclock.output._is_tty", lambda: True)


# ---------------------------------------------------------------------------
# Format resolution
# ---------------------------------------------------------------------------


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_no_color(self, tty, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")
        assert OutputManager().format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ---------------------------------------------------------------------------
# Stream discipline
# ---------------------------------------------------------------------------


class TestStreams:
    def test_data_on_stdout(self, capfd, non_tty):
        OutputManager().print_data("payload")
        out, err = capfd.readouterr()
        assert out == "payload\n"
        assert err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_on_stderr(self, capfd, non_tty, method):
        getattr(OutputManager(no_color=True), method)("message")
        out, err = capfd.readouterr()
        assert out == ""
        assert "message" in err

    def test_prefixes(self, capfd, non_tty):
        mgr = OutputManager(no_color=True)
        mgr.warning("w")
        mgr.error("e")
        _, err = capfd.readouterr()
        assert "Warning: w" in err
        assert "Error: e" in err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_success_suggest(self, capfd, non_tty):
        mgr = OutputManager(quiet=True, no_color=True)
        mgr.info("i")
        mgr.success("s")
        mgr.suggest("hint")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capfd, non_tty):
        mgr = OutputManager(quiet=True, no_color=True)
        mgr.error("bad")
        mgr.print_data("data")
        out, err = capfd.readouterr()
        assert out == "data\n"
        assert "bad" in err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("trace")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        mgr = OutputManager(verbose=True, no_color=True)
        assert mgr.is_verbose
        mgr.debug("Cache hit: GET /api/projects")
        assert "[debug] Cache hit: GET /api/projects" in capfd.readouterr().err


# ---------------------------------------------------------------------------
# Payload rendering
# ---------------------------------------------------------------------------


class TestFormatResponse:
    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"id": 1, "name": "Depot"})
        out = capfd.readouterr().out
        assert json.loads(out) == {"id": 1, "name": "Depot"}
        assert "\n  " in out

    def test_plain_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"id": 1, "name": "Depot"})
        assert capfd.readouterr().out == "id\t1\nname\tDepot\n"

    def test_plain_list_of_dicts(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response(
            [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]
        )
        assert capfd.readouterr().out == "1\tA\n2\tB\n"

    def test_plain_scalar(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response(42)
        assert capfd.readouterr().out == "42\n"

    def test_rich_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).format_response({"id": 1})
        assert '"id"' in capfd.readouterr().out

    def test_output_file(self, tmp_path, capfd, non_tty):
        target = tmp_path / "out.json"
        OutputManager(output_file=str(target)).format_response({"id": 1})
        assert json.loads(target.read_text()) == {"id": 1}
        assert capfd.readouterr().out == ""


class TestPrintTable:
    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["a", "b"], [["1", "2"]])
        assert json.loads(capfd.readouterr().out) == [{"a": "1", "b": "2"}]

    def test_plain(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["a", "b"], [["1", "2"]])
        assert capfd.readouterr().out == "a\tb\n1\t2\n"

    def test_rich(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["prefix"], [["/api/projects"]], title="Routes"
        )
        out = capfd.readouterr().out
        assert "/api/projects" in out
        assert "Routes" in out


# ---------------------------------------------------------------------------
# Global instance
# ---------------------------------------------------------------------------


class TestGlobalInstance:
    def test_get_creates_default(self, non_tty):
        reset_output()
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_reset(self, non_tty):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

    def test_module_helpers_delegate(self, capfd, non_tty):
        set_output(OutputManager(format=OutputFormat.JSON, no_color=True))
        output_module.format_response({"ok": 1})
        output_module.error("boom")
        out, err = capfd.readouterr()
        assert json.loads(out) == {"ok": 1}
        assert "boom" in err
