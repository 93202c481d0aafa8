"""
Runtime settings for the CLI and the HTTP service.

Values come from the process environment; a ``.env`` file in the working
directory is loaded first when present.

    FEEDGRAPH_HOST               bind address             (0.0.0.0)
    FEEDGRAPH_PORT               bind port                (3001)
    FEEDGRAPH_LOG_LEVEL          root log level           (INFO)
    FEEDGRAPH_MAX_DEPTH          deepest expression       (128)
    FEEDGRAPH_STRICT_REFERENCES  fail on unknown variable (false)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from feedgraph.compiler.context import DEFAULT_MAX_DEPTH


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    max_depth: int = DEFAULT_MAX_DEPTH
    strict_references: bool = False


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None, *, dotenv: bool = True) -> Settings:
    """Build Settings from ``env`` (the process environment by default)."""
    if env is None:
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    return Settings(
        host=env.get("FEEDGRAPH_HOST", Settings.host),
        port=_int(env, "FEEDGRAPH_PORT", Settings.port),
        log_level=env.get("FEEDGRAPH_LOG_LEVEL", Settings.log_level).upper(),
        max_depth=_int(env, "FEEDGRAPH_MAX_DEPTH", Settings.max_depth),
        strict_references=_bool(env, "FEEDGRAPH_STRICT_REFERENCES", Settings.strict_references),
    )


def configure_logging(level: str = "INFO") -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric)


__all__ = ["Settings", "configure_logging", "load_settings"]
