"""Configuration data structures and loading.

Provides the immutable TwiggitConfig loaded once at the CLI entry point and
passed explicitly to every service. Nothing reads configuration globally.
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

import tomlkit

from twiggit.core.errors import ConfigError

DEFAULT_PROJECTS_DIR = "~/Projects"
DEFAULT_WORKTREES_DIR = "~/Workspaces"
DEFAULT_SOURCE_BRANCH = "main"

CONFIG_KEYS = ("projects_dir", "worktrees_dir", "default_source_branch")

_ENV_OVERRIDES = {
    "TWIGGIT_PROJECTS_DIR": "projects_dir",
    "TWIGGIT_WORKTREES_DIR": "worktrees_dir",
    "TWIGGIT_DEFAULT_SOURCE_BRANCH": "default_source_branch",
}


@dataclass(frozen=True)
class TwiggitConfig:
    """Immutable configuration.

    Both directories are absolute. All fields are read-only after construction.
    """

    projects_dir: Path
    worktrees_dir: Path
    default_source_branch: str = DEFAULT_SOURCE_BRANCH


def config_search_paths(env: Mapping[str, str], home: Path) -> list[Path]:
    """Candidate config files in lookup order."""
    paths: list[Path] = []
    xdg = env.get("XDG_CONFIG_HOME")
    if xdg:
        paths.append(Path(xdg) / "twiggit" / "config.toml")
    paths.append(home / ".config" / "twiggit" / "config.toml")
    paths.append(home / ".twiggit.toml")
    return paths


def find_config_file(env: Mapping[str, str], home: Path) -> Path | None:
    for candidate in config_search_paths(env, home):
        if candidate.is_file():
            return candidate
    return None


def _parse_directory(raw: object, key: str, home: Path, source: Path | None) -> Path:
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigError(f"'{key}' must be a non-empty string", path=source)
    if raw == "~" or raw.startswith("~/"):
        raw = str(home) + raw[1:]
    path = Path(raw)
    if not path.is_absolute():
        raise ConfigError(f"'{key}' must be an absolute path, got '{raw}'", path=source)
    return path


def _parse_branch(raw: object, source: Path | None) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigError("'default_source_branch' must be a non-empty string", path=source)
    return raw.strip()


def _read_toml(path: Path) -> dict[str, object]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML: {e}", path=path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}", path=path) from e


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> TwiggitConfig:
    """Load configuration from defaults, a TOML file, and the environment.

    Args:
        path: Explicit config file. When None, the first existing file from
            config_search_paths() is used, if any.
        env: Environment mapping (defaults to os.environ)
        home: Home directory used for ``~`` expansion (defaults to Path.home())

    Returns:
        TwiggitConfig with absolute directories

    Raises:
        ConfigError: If the file is malformed or a value is invalid
    """
    env = os.environ if env is None else env
    home = Path.home() if home is None else home

    values: dict[str, object] = {
        "projects_dir": DEFAULT_PROJECTS_DIR,
        "worktrees_dir": DEFAULT_WORKTREES_DIR,
        "default_source_branch": DEFAULT_SOURCE_BRANCH,
    }

    source = path if path is not None else find_config_file(env, home)
    if source is not None:
        if not source.is_file():
            raise ConfigError("Config file not found", path=source)
        data = _read_toml(source)
        unknown = sorted(set(data) - set(CONFIG_KEYS))
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}", path=source)
        values.update(data)

    for env_name, key in _ENV_OVERRIDES.items():
        if env.get(env_name):
            values[key] = env[env_name]

    return TwiggitConfig(
        projects_dir=_parse_directory(values["projects_dir"], "projects_dir", home, source),
        worktrees_dir=_parse_directory(values["worktrees_dir"], "worktrees_dir", home, source),
        default_source_branch=_parse_branch(values["default_source_branch"], source),
    )


def update_config_value(config: TwiggitConfig, key: str, value: str, home: Path) -> TwiggitConfig:
    """Return a copy of config with one key changed, validating the new value."""
    match key:
        case "projects_dir":
            return replace(config, projects_dir=_parse_directory(value, key, home, None))
        case "worktrees_dir":
            return replace(config, worktrees_dir=_parse_directory(value, key, home, None))
        case "default_source_branch":
            return replace(config, default_source_branch=_parse_branch(value, None))
        case _:
            raise ConfigError(f"Unknown config key '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}")


def save_config_value(path: Path, key: str, value: str) -> None:
    """Set one key in a TOML config file, creating the file if needed.

    Other keys, comments and formatting are preserved using tomlkit.
    """
    if path.exists():
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    else:
        doc = tomlkit.document()
        doc.add(tomlkit.comment("twiggit configuration"))

    doc[key] = value

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
