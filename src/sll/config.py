# src/sll/config.py
"""
Run configuration.

Settings are layered, later layers winning:

1. defaults below;
2. the ``likes_log`` section of a YAML file (``CONFIG_FILE``, default
   ``configs/config.yaml``; a missing file is not an error);
3. environment variables, after loading ``.env``;
4. explicit overrides, normally the command line.

The GitHub Actions inputs ``INPUT_USERNAME`` and ``INPUT_OUTPUT-PATH`` are
accepted so the archiver can run as an action step unchanged.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv
from loguru import logger

from sll.errors import ConfigError
from sll.io.soundcloud_client import DEFAULT_BASE, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

DEFAULT_CONFIG_FILE = "configs/config.yaml"
CONFIG_SECTION = "likes_log"
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

ENV_KEYS: Dict[str, Tuple[str, ...]] = {
    "username": ("SC_USERNAME", "INPUT_USERNAME"),
    "output_path": ("SC_OUTPUT_PATH", "INPUT_OUTPUT-PATH"),
    "concurrency": ("SC_CONCURRENCY",),
    "page_size": ("SC_PAGE_SIZE",),
    "max_pages": ("SC_MAX_PAGES",),
    "request_timeout": ("SC_REQUEST_TIMEOUT",),
    "deadline": ("SC_DEADLINE",),
    "preserve_playlist_order": ("SC_PRESERVE_PLAYLIST_ORDER",),
    "base_url": ("SC_BASE_URL",),
    "user_agent": ("SC_USER_AGENT",),
    "client_id": ("SOUNDCLOUD_CLIENT_ID",),
    "log_level": ("LOG_LEVEL",),
}


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _optional(convert: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def inner(raw: Any) -> Any:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return None
        return convert(raw)
    return inner


CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    "username": str,
    "output_path": str,
    "concurrency": int,
    "page_size": int,
    "max_pages": _optional(int),
    "request_timeout": float,
    "deadline": _optional(float),
    "preserve_playlist_order": parse_bool,
    "base_url": str,
    "user_agent": str,
    "client_id": _optional(str),
    "log_level": lambda v: str(v).upper(),
}


@dataclass
class Settings:
    username: str = ""
    output_path: str = ""
    concurrency: int = 5
    page_size: int = 100
    max_pages: Optional[int] = None
    request_timeout: float = DEFAULT_TIMEOUT
    deadline: Optional[float] = None
    preserve_playlist_order: bool = False
    base_url: str = DEFAULT_BASE
    user_agent: str = DEFAULT_USER_AGENT
    client_id: Optional[str] = None
    log_level: str = "INFO"

    def validate(self) -> "Settings":
        if not self.username:
            raise ConfigError("username is required (argument, SC_USERNAME or INPUT_USERNAME)")
        if not self.output_path:
            raise ConfigError("output path is required (--output, SC_OUTPUT_PATH or INPUT_OUTPUT-PATH)")
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        if not 1 <= self.page_size <= 200:
            raise ConfigError(f"page_size must be between 1 and 200, got {self.page_size}")
        if self.max_pages is not None and self.max_pages < 1:
            raise ConfigError(f"max_pages must be at least 1 when set, got {self.max_pages}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.deadline is not None and self.deadline <= 0:
            raise ConfigError(f"deadline must be positive when set, got {self.deadline}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}")
        return self


def _coerce(key: str, raw: Any, source: str) -> Any:
    try:
        return CONVERTERS[key](raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {key} from {source}: {raw!r} ({e})") from e


def load_yaml_section(path: str | Path) -> Dict[str, Any]:
    """Read the ``likes_log`` section of a YAML config file; ``{}`` if the file does not exist."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"could not parse {path}: {e}") from e
    section = cfg.get(CONFIG_SECTION, {}) if isinstance(cfg, dict) else None
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: '{CONFIG_SECTION}' must be a mapping")
    return section


def load_settings(overrides: Optional[Mapping[str, Any]] = None,
                  config_file: Optional[str] = None,
                  environ: Optional[Mapping[str, str]] = None,
                  use_dotenv: bool = True) -> Settings:
    """
    Build validated :class:`Settings` from file, environment and overrides.

    ``None`` values in ``overrides`` are treated as "not given".
    """
    if use_dotenv:
        load_dotenv()
    env = os.environ if environ is None else environ
    config_file = config_file or env.get("CONFIG_FILE") or DEFAULT_CONFIG_FILE

    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}

    for key, raw in load_yaml_section(config_file).items():
        if raw is None:
            continue
        if key not in known:
            logger.warning(f"Ignoring unknown setting {key!r} in {config_file}")
            continue
        values[key] = _coerce(key, raw, config_file)

    for key, names in ENV_KEYS.items():
        for name in names:
            raw = env.get(name)
            if raw is not None and raw.strip():
                values[key] = _coerce(key, raw, name)
                break

    for key, raw in (overrides or {}).items():
        if raw is None:
            continue
        if key not in known:
            raise ConfigError(f"unknown setting {key!r}")
        values[key] = _coerce(key, raw, "arguments")

    return Settings(**values).validate()
