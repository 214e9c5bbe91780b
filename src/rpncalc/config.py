"""Configuration loading for rpncalc.

This module is intentionally small and deterministic: it only reads
`rpncalc.toml` and performs light validation. A missing file means defaults.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rpncalc.errors import CalcConfigError

CONFIG_FILENAME = "rpncalc.toml"

ANGLE_MODES = ("deg", "rad")
NL_PROVIDERS = ("rules", "openai", "anthropic")

_DEFAULT_MODELS = {
    "rules": "",
    "openai": "gpt-4.1-mini",
    "anthropic": "claude-sonnet-4-5",
}
_DEFAULT_KEY_ENVS = {
    "rules": "",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


@dataclass(frozen=True)
class CalcSettings:
    angle_mode: str

    @property
    def degree_mode(self) -> bool:
        return self.angle_mode == "deg"


@dataclass(frozen=True)
class HistoryConfig:
    enabled: bool
    path: Path
    max_entries: int


@dataclass(frozen=True)
class NLConfig:
    provider: str
    model: str
    api_key_env: str
    system_prompt: str


@dataclass(frozen=True)
class RpncalcConfig:
    version: int
    root: Path
    calc: CalcSettings
    history: HistoryConfig
    nl: NLConfig


def find_config_root(start: Path) -> Path | None:
    """Walk upward from `start` (file or directory) looking for `rpncalc.toml`."""

    cur = start
    try:
        if cur.is_file():
            cur = cur.parent
    except OSError:
        cur = cur.parent

    cur = cur.resolve()
    while True:
        if (cur / CONFIG_FILENAME).is_file():
            return cur
        if cur.parent == cur:
            return None
        cur = cur.parent


def _as_table(value: Any, *, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CalcConfigError(f"Expected [{name}] to be a table.")
    return value


def _as_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise CalcConfigError(f"Expected {name} to be a boolean.")
    return value


def _as_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise CalcConfigError(f"Expected {name} to be an integer.")
    return value


def _as_str(value: Any, *, name: str) -> str:
    if not isinstance(value, str):
        raise CalcConfigError(f"Expected {name} to be a string.")
    return value


def _as_choice(value: Any, *, name: str, choices: tuple[str, ...]) -> str:
    s = _as_str(value, name=name).strip().lower()
    if s not in choices:
        raise CalcConfigError(f"Invalid {name}: {value!r} (expected one of {', '.join(choices)}).")
    return s


def _read_toml(config_path: Path) -> dict[str, Any]:
    try:
        raw = config_path.read_bytes()
    except FileNotFoundError as e:
        raise CalcConfigError(f"Missing {CONFIG_FILENAME} at: {config_path}") from e
    except OSError as e:
        raise CalcConfigError(f"Failed reading config file: {config_path}") from e

    try:
        return tomllib.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise CalcConfigError(f"Config is not valid UTF-8: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise CalcConfigError(f"Invalid TOML in {config_path}: {e}") from e


def load_config(*, root: Path | None = None, config_path: Path | None = None) -> RpncalcConfig:
    """Load and validate `rpncalc.toml`.

    An explicit `config_path` must exist. Otherwise the file is looked up in
    `root`, or by walking upward from the current directory; if none is found
    the defaults are returned, rooted at `root` or the current directory.
    """

    if config_path is None:
        if root is None:
            root = find_config_root(Path.cwd())
        if root is not None and (root / CONFIG_FILENAME).is_file():
            config_path = root / CONFIG_FILENAME
    elif root is None:
        root = config_path.parent

    if root is None:
        root = Path.cwd()

    data = _read_toml(config_path) if config_path is not None else {}

    version = data.get("version", 1)
    version_i = _as_int(version, name="version")
    if version_i != 1:
        raise CalcConfigError(f"Unsupported config version: {version_i} (expected 1).")

    calc_tbl = _as_table(data.get("calc"), name="calc")
    history_tbl = _as_table(data.get("history"), name="history")
    nl_tbl = _as_table(data.get("nl"), name="nl")

    if "angle_mode" in calc_tbl:
        angle_mode = _as_choice(calc_tbl["angle_mode"], name="calc.angle_mode", choices=ANGLE_MODES)
    else:
        angle_mode = "deg"

    if "enabled" in history_tbl:
        history_enabled = _as_bool(history_tbl["enabled"], name="history.enabled")
    else:
        history_enabled = True

    if "path" in history_tbl:
        history_path = Path(_as_str(history_tbl["path"], name="history.path")).expanduser()
    else:
        history_path = Path(".rpncalc_history.json")
    if not history_path.is_absolute():
        history_path = root / history_path

    if "max_entries" in history_tbl:
        max_entries = _as_int(history_tbl["max_entries"], name="history.max_entries")
    else:
        max_entries = 200

    if "provider" in nl_tbl:
        provider = _as_choice(nl_tbl["provider"], name="nl.provider", choices=NL_PROVIDERS)
    else:
        provider = "rules"

    if "model" in nl_tbl:
        model = _as_str(nl_tbl["model"], name="nl.model")
    else:
        model = _DEFAULT_MODELS[provider]

    if "api_key_env" in nl_tbl:
        api_key_env = _as_str(nl_tbl["api_key_env"], name="nl.api_key_env")
    else:
        api_key_env = _DEFAULT_KEY_ENVS[provider]

    if "system_prompt" in nl_tbl:
        system_prompt = _as_str(nl_tbl["system_prompt"], name="nl.system_prompt")
    else:
        system_prompt = ""

    # Validation
    if max_entries < 1:
        raise CalcConfigError("Invalid config: history.max_entries must be >= 1.")

    if provider != "rules" and not model.strip():
        raise CalcConfigError(f"Invalid config: nl.model is required for provider {provider!r}.")

    return RpncalcConfig(
        version=version_i,
        root=root,
        calc=CalcSettings(angle_mode=angle_mode),
        history=HistoryConfig(enabled=history_enabled, path=history_path, max_entries=max_entries),
        nl=NLConfig(
            provider=provider,
            model=model,
            api_key_env=api_key_env,
            system_prompt=system_prompt,
        ),
    )
