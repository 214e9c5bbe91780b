"""MCP server for rpncalc: exposes evaluate/translate/ask/history as MCP tools.

The server uses FastMCP (optional dependency) for the transport layer.
Core tool functions are plain Python and can be tested without FastMCP installed.
"""

from __future__ import annotations

import io
import json
from contextlib import redirect_stdout
from pathlib import Path

import rpncalc.cli

# ---------------------------------------------------------------------------
# Core tool functions (no FastMCP dependency)
# ---------------------------------------------------------------------------


def _run_cli_json(argv: list[str]) -> str:
    """Run a CLI command with --json and capture its stdout JSON output.

    If the command produces no stdout (e.g. an argparse error that only
    prints to stderr), we synthesise an error envelope so callers always get
    valid JSON.
    """
    cmd_name = argv[0] if argv else "unknown"
    buf = io.StringIO()
    with redirect_stdout(buf):
        rpncalc.cli.main(argv)
    output = buf.getvalue().strip()
    if not output:
        return json.dumps({"command": cmd_name, "ok": False, "error": "command produced no output"})

    try:
        json.loads(output)
    except (json.JSONDecodeError, ValueError):
        return json.dumps({"command": cmd_name, "ok": False, "error": output[:500]})
    return output


def _common(argv: list[str], *, root: str | None) -> list[str]:
    if root:
        argv += ["--root", root]
    return argv


def tool_evaluate(expression: str, *, degree_mode: bool = True, root: str | None = None) -> str:
    """Evaluate an expression; never records history."""
    argv = _common(["eval", "--json", "--no-history", "--rpn"], root=root)
    argv.append("--deg" if degree_mode else "--rad")
    # `--` keeps expressions such as "-5+3" from being read as flags.
    argv += ["--", expression]
    return _run_cli_json(argv)


def tool_translate(text: str, *, root: str | None = None) -> str:
    """Translate a phrase into calculator syntax without evaluating it."""
    argv = _common(["translate", "--json"], root=root)
    argv += ["--", text]
    return _run_cli_json(argv)


def tool_ask(text: str, *, degree_mode: bool = True, root: str | None = None) -> str:
    """Translate a phrase and evaluate the resulting expression."""
    argv = _common(["ask", "--json", "--no-history"], root=root)
    argv.append("--deg" if degree_mode else "--rad")
    argv += ["--", text]
    return _run_cli_json(argv)


def tool_history(*, limit: int | None = None, root: str | None = None) -> str:
    """Return recorded calculations, newest first."""
    argv = _common(["history", "--json"], root=root)
    if limit is not None:
        argv += ["--limit", str(limit)]
    return _run_cli_json(argv)


# ---------------------------------------------------------------------------
# FastMCP server factory
# ---------------------------------------------------------------------------


def create_mcp_server():
    """Create and return a FastMCP server with rpncalc tools registered.

    Raises ImportError if fastmcp is not installed.
    """
    from fastmcp import FastMCP

    mcp = FastMCP("rpncalc", instructions="Scientific calculator with natural-language input")

    @mcp.tool()
    def rpncalc_evaluate(expression: str, degree_mode: bool = True) -> str:
        """Evaluate a calculator expression.

        Supports + - * / ^, postfix ! and %, parentheses, pi, e and the
        functions sin cos tan csc sec cot ln log sqrt. Returns JSON with the
        formatted result, the numeric value and the postfix form.
        """
        return tool_evaluate(expression, degree_mode=degree_mode)

    @mcp.tool()
    def rpncalc_translate(text: str) -> str:
        """Translate a natural-language request into calculator syntax.

        Returns JSON with the candidate expression and any problems found
        while parsing it.
        """
        return tool_translate(text)

    @mcp.tool()
    def rpncalc_ask(text: str, degree_mode: bool = True) -> str:
        """Translate a natural-language request and evaluate it.

        Returns JSON with the expression used and its result.
        """
        return tool_ask(text, degree_mode=degree_mode)

    @mcp.tool()
    def rpncalc_history(limit: int | None = None) -> str:
        """Return recorded calculations, newest first."""
        return tool_history(limit=limit)

    return mcp


def run_server(*, root: str | None = None) -> None:
    """Entry point: create and run the MCP server (stdio transport).

    If *root* is provided, changes the working directory to that path so
    that config and history resolve relative to it.
    """
    import os

    if root:
        os.chdir(Path(root).resolve())
    mcp = create_mcp_server()
    mcp.run()
