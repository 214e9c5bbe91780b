"""Tests for the MCP server.

The core tool functions are tested directly (without fastmcp) to keep tests
fast and dependency-free.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rpncalc.mcp_server import tool_ask, tool_evaluate, tool_history, tool_translate


class TestMCPToolEvaluate:
    def test_evaluate_returns_structured_result(self, tmp_path: Path) -> None:
        data = json.loads(tool_evaluate("2+3*4", root=str(tmp_path)))
        assert data["command"] == "eval"
        assert data["ok"] is True
        assert data["result"] == "14"
        assert data["rpn"] == "2 3 4 * +"

    def test_evaluate_accepts_leading_minus(self, tmp_path: Path) -> None:
        data = json.loads(tool_evaluate("-5+3", root=str(tmp_path)))
        assert data["value"] == -2

    def test_evaluate_radians(self, tmp_path: Path) -> None:
        data = json.loads(tool_evaluate("sin(90)", degree_mode=False, root=str(tmp_path)))
        assert data["degree_mode"] is False
        assert data["value"] == pytest.approx(0.8939966636)

    def test_evaluate_error_envelope(self, tmp_path: Path) -> None:
        data = json.loads(tool_evaluate("(2+3", root=str(tmp_path)))
        assert data["ok"] is False
        assert data["kind"] == "parse"

    def test_evaluate_never_records_history(self, tmp_path: Path) -> None:
        tool_evaluate("1+1", root=str(tmp_path))
        assert not (tmp_path / ".rpncalc_history.json").exists()


class TestMCPToolTranslateAndAsk:
    def test_translate(self, tmp_path: Path) -> None:
        data = json.loads(tool_translate("6 times 7", root=str(tmp_path)))
        assert data["command"] == "translate"
        assert data["ok"] is True
        assert data["expression"] == "6 * 7"

    def test_ask(self, tmp_path: Path) -> None:
        data = json.loads(tool_ask("what is 20 percent of 450", root=str(tmp_path)))
        assert data["ok"] is True
        assert data["expression"] == "(20/100)*450"
        assert data["result"] == "90"

    def test_ask_equation_fails_cleanly(self, tmp_path: Path) -> None:
        data = json.loads(tool_ask("1+1=2", root=str(tmp_path)))
        assert data["ok"] is False
        assert data["kind"] == "lex"


class TestMCPToolProviderErrors:
    @pytest.fixture(autouse=True)
    def _rejecting_provider(self, monkeypatch) -> None:
        from rpncalc.nl.base import Translator

        class _Rejecting(Translator):
            async def translate(
                self, text: str, *, extra_error_context: list[str] | None = None
            ) -> str:
                raise ConnectionError("provider unreachable")

        monkeypatch.setattr("rpncalc.nl.build_translator", lambda cfg: _Rejecting())

    def test_ask_returns_error_envelope(self, tmp_path: Path) -> None:
        data = json.loads(tool_ask("1 plus 1", root=str(tmp_path)))
        assert data["ok"] is False
        assert data["kind"] == "translation"
        assert data["error"] == "ConnectionError: provider unreachable"

    def test_translate_returns_error_envelope(self, tmp_path: Path) -> None:
        data = json.loads(tool_translate("1 plus 1", root=str(tmp_path)))
        assert data["command"] == "translate"
        assert data["ok"] is False
        assert data["kind"] == "translation"


class TestMCPToolHistory:
    def test_history_empty(self, tmp_path: Path) -> None:
        data = json.loads(tool_history(root=str(tmp_path)))
        assert data == {"command": "history", "ok": True, "entries": []}

    def test_history_limit(self, tmp_path: Path) -> None:
        (tmp_path / ".rpncalc_history.json").write_text(
            json.dumps([{"expr": str(i), "result": str(i), "ts": i} for i in range(5)]),
            encoding="utf-8",
        )
        data = json.loads(tool_history(limit=2, root=str(tmp_path)))
        assert [e["expr"] for e in data["entries"]] == ["0", "1"]


def test_create_mcp_server_registers_tools() -> None:
    pytest.importorskip("fastmcp", reason="fastmcp not installed")
    from rpncalc.mcp_server import create_mcp_server

    mcp = create_mcp_server()
    assert mcp.name == "rpncalc"
