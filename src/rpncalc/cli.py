from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rpncalc import __version__
from rpncalc.diagnostics import EQUATION_NOTICE, error_kind, format_error_with_hint
from rpncalc.engine import evaluate_expression, explain, format_result
from rpncalc.errors import (
    CalcConfigError,
    EvaluationError,
    HistoryError,
    TranslationError,
)
from rpncalc.tokens import format_tokens

if TYPE_CHECKING:  # pragma: no cover
    from rpncalc.config import RpncalcConfig
    from rpncalc.history import History


EXIT_OK = 0
EXIT_EVAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_TRANSLATION_ERROR = 3

REPL_PROMPT = "> "


def _add_common_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--root",
        type=str,
        default=None,
        help="Config root (defaults to searching upward from cwd for rpncalc.toml).",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to rpncalc.toml (defaults to <root>/rpncalc.toml).",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")


def _add_angle_flags(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group()
    group.add_argument(
        "--deg",
        dest="angle_mode",
        action="store_const",
        const="deg",
        default=None,
        help="Trigonometric arguments are in degrees.",
    )
    group.add_argument(
        "--rad",
        dest="angle_mode",
        action="store_const",
        const="rad",
        help="Trigonometric arguments are in radians.",
    )


def _add_json_flag(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print one JSON object on stdout instead of text.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rpncalc")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    eval_p = subparsers.add_parser(
        "eval",
        help="Evaluate an expression.",
        description="Evaluate an expression. Put `--` before expressions starting with '-'.",
    )
    _add_common_flags(eval_p)
    _add_angle_flags(eval_p)
    _add_json_flag(eval_p)
    eval_p.add_argument("--rpn", action="store_true", help="Also print the postfix form.")
    eval_p.add_argument("--no-history", action="store_true", help="Do not record the result.")
    eval_p.add_argument("expression", nargs="+", help="Expression text (joined with spaces).")

    ask_p = subparsers.add_parser("ask", help="Translate a phrase and evaluate it.")
    _add_common_flags(ask_p)
    _add_angle_flags(ask_p)
    _add_json_flag(ask_p)
    ask_p.add_argument("--no-history", action="store_true", help="Do not record the result.")
    ask_p.add_argument("text", nargs="+", help="Natural-language request.")

    translate_p = subparsers.add_parser(
        "translate", help="Translate a phrase into an expression without evaluating it."
    )
    _add_common_flags(translate_p)
    _add_json_flag(translate_p)
    translate_p.add_argument("text", nargs="+", help="Natural-language request.")

    history_p = subparsers.add_parser("history", help="Show, clear or export the history.")
    _add_common_flags(history_p)
    _add_json_flag(history_p)
    history_p.add_argument("--limit", type=int, default=None, help="Show at most N entries.")
    history_p.add_argument("--clear", action="store_true", help="Delete every entry.")
    history_p.add_argument("--export", type=str, default=None, help="Write entries to PATH.")

    repl_p = subparsers.add_parser("repl", help="Interactive calculator.")
    _add_common_flags(repl_p)
    _add_angle_flags(repl_p)
    repl_p.add_argument("--no-history", action="store_true", help="Do not record results.")

    mcp_p = subparsers.add_parser("mcp", help="MCP server for agent integration.")
    mcp_sub = mcp_p.add_subparsers(dest="mcp_command", required=True)
    serve_p = mcp_sub.add_parser("serve", help="Start the MCP server (stdio transport).")
    serve_p.add_argument("--root", type=str, default=None, help="Working directory for tools.")

    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    return _build_parser().parse_args(argv)


def _is_json_mode(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "json_output", False))


def _emit_json(payload: dict[str, Any]) -> None:
    print(json.dumps(payload))


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


def _fail(args: argparse.Namespace, exc: BaseException, code: int) -> int:
    if _is_json_mode(args):
        _emit_json(
            {
                "command": args.command,
                "ok": False,
                "error": (str(exc) or repr(exc)).strip(),
                "kind": error_kind(exc),
            }
        )
    else:
        _eprint(format_error_with_hint(exc))
    return code


def _setup_logging(args: argparse.Namespace) -> None:
    if getattr(args, "verbose", False):
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


def _load_config(args: argparse.Namespace) -> RpncalcConfig:
    from rpncalc.config import load_config

    root = Path(args.root).resolve() if args.root else None
    config_path = Path(args.config).resolve() if args.config else None
    return load_config(root=root, config_path=config_path)


def _degree_mode(args: argparse.Namespace, cfg: RpncalcConfig) -> bool:
    mode = getattr(args, "angle_mode", None)
    if mode is None:
        return cfg.calc.degree_mode
    return mode == "deg"


def _open_history(cfg: RpncalcConfig) -> History:
    from rpncalc.history import History

    return History(cfg.history.path, max_entries=cfg.history.max_entries)


def _record(args: argparse.Namespace, cfg: RpncalcConfig, expr: str, result: str) -> None:
    if not cfg.history.enabled or getattr(args, "no_history", False):
        return
    try:
        _open_history(cfg).record(expr, result)
    except HistoryError as e:
        # A result that could not be persisted is still a result.
        _eprint(f"warn: {e}")


def cmd_eval(args: argparse.Namespace) -> int:
    try:
        cfg = _load_config(args)
    except CalcConfigError as e:
        return _fail(args, e, EXIT_CONFIG_ERROR)

    expr = " ".join(args.expression)
    degree_mode = _degree_mode(args, cfg)
    try:
        postfix = explain(expr) if args.rpn else None
        value = evaluate_expression(expr, degree_mode=degree_mode)
    except EvaluationError as e:
        return _fail(args, e, EXIT_EVAL_ERROR)

    result = format_result(value)
    _record(args, cfg, expr, result)

    if _is_json_mode(args):
        payload: dict[str, Any] = {
            "command": "eval",
            "ok": True,
            "expression": expr,
            "result": result,
            "value": value,
            "degree_mode": degree_mode,
        }
        if postfix is not None:
            payload["rpn"] = format_tokens(postfix)
        _emit_json(payload)
        return EXIT_OK

    if postfix is not None:
        print(f"rpn: {format_tokens(postfix)}")
    print(result)
    return EXIT_OK


def cmd_translate(args: argparse.Namespace) -> int:
    from rpncalc.nl import build_translator

    text = " ".join(args.text)
    try:
        cfg = _load_config(args)
        translator = build_translator(cfg.nl)
        res = asyncio.run(translator.translate_with_retry(text))
    except CalcConfigError as e:
        return _fail(args, e, EXIT_CONFIG_ERROR)
    except TranslationError as e:
        return _fail(args, e, EXIT_TRANSLATION_ERROR)

    if _is_json_mode(args):
        _emit_json(
            {
                "command": "translate",
                "ok": not res.errors,
                "text": text,
                "expression": res.expression,
                "attempts": res.attempts,
                "errors": res.errors,
            }
        )
    else:
        print(res.expression)
        for err in res.errors:
            _eprint(f"warn: {err}")
    return EXIT_OK if not res.errors else EXIT_TRANSLATION_ERROR


def cmd_ask(args: argparse.Namespace) -> int:
    from rpncalc.nl import build_translator, is_equation_request

    text = " ".join(args.text)
    try:
        cfg = _load_config(args)
        translator = build_translator(cfg.nl)
        res = asyncio.run(translator.translate_with_retry(text))
    except CalcConfigError as e:
        return _fail(args, e, EXIT_CONFIG_ERROR)
    except TranslationError as e:
        return _fail(args, e, EXIT_TRANSLATION_ERROR)

    notice = EQUATION_NOTICE if is_equation_request(text) else None
    if notice and not _is_json_mode(args):
        _eprint(f"note: {notice}")

    degree_mode = _degree_mode(args, cfg)
    try:
        value = evaluate_expression(res.expression, degree_mode=degree_mode)
    except EvaluationError as e:
        if not _is_json_mode(args):
            _eprint(f"expression: {res.expression}")
        return _fail(args, e, EXIT_EVAL_ERROR)

    result = format_result(value)
    _record(args, cfg, res.expression, result)

    if _is_json_mode(args):
        payload: dict[str, Any] = {
            "command": "ask",
            "ok": True,
            "text": text,
            "expression": res.expression,
            "result": result,
            "value": value,
            "degree_mode": degree_mode,
            "attempts": res.attempts,
        }
        if notice:
            payload["notice"] = notice
        _emit_json(payload)
        return EXIT_OK

    print(f"{res.expression} = {result}")
    return EXIT_OK


def cmd_history(args: argparse.Namespace) -> int:
    try:
        cfg = _load_config(args)
        history = _open_history(cfg)
        if args.clear:
            history.clear()
            if _is_json_mode(args):
                _emit_json({"command": "history", "ok": True, "cleared": True})
            return EXIT_OK
        if args.export:
            dest = history.export(Path(args.export))
            if _is_json_mode(args):
                _emit_json({"command": "history", "ok": True, "exported": str(dest)})
            else:
                print(f"exported {len(history)} entries to {dest}")
            return EXIT_OK
    except (CalcConfigError, HistoryError) as e:
        return _fail(args, e, EXIT_CONFIG_ERROR)

    entries = history.entries()
    if args.limit is not None:
        entries = entries[: max(0, args.limit)]

    if _is_json_mode(args):
        _emit_json(
            {
                "command": "history",
                "ok": True,
                "entries": [{"expr": e.expr, "result": e.result, "ts": e.ts} for e in entries],
            }
        )
        return EXIT_OK

    for e in entries:
        print(f"{e.expr} = {e.result}")
    return EXIT_OK


def _iter_input(prompt: str) -> Iterator[str]:
    while True:
        try:
            yield input(prompt)
        except EOFError:
            return


def run_repl(
    lines: Iterable[str],
    *,
    degree_mode: bool,
    record: Callable[[str, str], None] | None = None,
    show_history: Callable[[], None] | None = None,
) -> int:
    """Evaluate one expression per line until `:quit` or end of input.

    Errors are reported and the loop continues with the next line.
    """

    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line in (":q", ":quit", ":exit"):
            break
        if line == ":deg":
            degree_mode = True
            print("mode: deg")
            continue
        if line == ":rad":
            degree_mode = False
            print("mode: rad")
            continue
        if line == ":history":
            if show_history is not None:
                show_history()
            continue
        if line.startswith(":"):
            _eprint(f"error: unknown command {line!r}")
            continue

        try:
            value = evaluate_expression(line, degree_mode=degree_mode)
        except EvaluationError as e:
            _eprint(format_error_with_hint(e))
            continue

        result = format_result(value)
        print(result)
        if record is not None:
            record(line, result)
    return EXIT_OK


def cmd_repl(args: argparse.Namespace) -> int:
    try:
        cfg = _load_config(args)
    except CalcConfigError as e:
        return _fail(args, e, EXIT_CONFIG_ERROR)

    def _record_line(expr: str, result: str) -> None:
        _record(args, cfg, expr, result)

    def _show_history() -> None:
        try:
            entries = _open_history(cfg).entries()
        except HistoryError as e:
            _eprint(f"warn: {e}")
            return
        for e in entries:
            print(f"{e.expr} = {e.result}")

    return run_repl(
        _iter_input(REPL_PROMPT),
        degree_mode=_degree_mode(args, cfg),
        record=_record_line,
        show_history=_show_history,
    )


def cmd_mcp(args: argparse.Namespace) -> int:
    from rpncalc.mcp_server import run_server

    try:
        run_server(root=args.root)
    except ImportError:
        _eprint("error: fastmcp is required for `rpncalc mcp`. Install it with: pip install fastmcp")
        return EXIT_CONFIG_ERROR
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(list(sys.argv[1:] if argv is None else argv))
    except SystemExit as e:
        # argparse uses SystemExit for --help/--version and parse errors.
        code = e.code
        return int(code) if isinstance(code, int) else EXIT_CONFIG_ERROR

    _setup_logging(args)

    if args.command == "eval":
        return cmd_eval(args)
    if args.command == "ask":
        return cmd_ask(args)
    if args.command == "translate":
        return cmd_translate(args)
    if args.command == "history":
        return cmd_history(args)
    if args.command == "repl":
        return cmd_repl(args)
    if args.command == "mcp":
        return cmd_mcp(args)

    return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
