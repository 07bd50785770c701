"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- JSON and plain formats for documents and tables
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from kcadmin import output as output_module
from kcadmin.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)

# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("kcadmin.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("kcadmin.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# Format resolution and colour
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_no_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color()

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color()

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm")
        assert not _should_disable_color()


# ------------------------------------------------------------------ #
# stdout / stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("AT1")
        out, err = capfd.readouterr()
        assert out == "AT1\n"
        assert err == ""

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            ("info", "hello"),
            ("success", "hello"),
            ("warning", "Warning: hello"),
            ("error", "Error: hello"),
        ],
    )
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method, expected):
        getattr(OutputManager(no_color=True), method)("hello")
        out, err = capfd.readouterr()
        assert out == ""
        assert err.strip() == expected


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("a")
        mgr.success("b")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_warnings(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.warning("w")
        mgr.error("e")
        err = capfd.readouterr().err
        assert "Warning: w" in err
        assert "Error: e" in err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("x")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, verbose=True)
        mgr.debug("x")
        assert mgr.is_verbose
        assert capfd.readouterr().err.strip() == "[debug] x"


# ------------------------------------------------------------------ #
# Documents and tables
# ------------------------------------------------------------------ #


class TestFormats:
    def test_json_document(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"version": "24.0.1"})
        assert json.loads(capfd.readouterr().out) == {"version": "24.0.1"}

    def test_plain_document(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).format_response({"a": 1, "b": {"c": 2}})
        assert capfd.readouterr().out.splitlines() == ["a\t1", 'b\t{"c": 2}']

    def test_json_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(
            ["id", "realm"], [["1", "master"], ["2", "acme"]]
        )
        assert json.loads(capfd.readouterr().out) == [
            {"id": "1", "realm": "master"},
            {"id": "2", "realm": "acme"},
        ]

    def test_plain_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(["id", "realm"], [["1", "master"]])
        assert capfd.readouterr().out.splitlines() == ["id\trealm", "1\tmaster"]

    def test_rich_table_contains_cells(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            ["id", "realm"], [["1", "master"]], title="Realms"
        )
        out = capfd.readouterr().out
        assert "master" in out
        assert "Realms" in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazy_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_helpers_delegate(self, capfd, non_tty):
        set_output(OutputManager(no_color=True))
        output_module.error("boom")
        assert "Error: boom" in capfd.readouterr().err

    def test_debug_helper_respects_verbose(self, capfd, non_tty):
        set_output(OutputManager(no_color=True))
        output_module.debug("hidden")
        assert capfd.readouterr().err == ""

        set_output(OutputManager(no_color=True, verbose=True))
        output_module.debug("shown")
        assert capfd.readouterr().err.strip() == "[debug] shown"
