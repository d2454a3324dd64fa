"""INI configuration file loading.

Hides the file format and its quirks (quoted values, inline comments,
multi-line messages) from the rest of the program.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .defaults import trim_lines
from .models import Config

logger = logging.getLogger(__name__)

SECTION = "default"

# INI key -> Config field
_KEYS = {
    "openai_token": "token",
    "model": "model",
    "temperature": "temperature",
    "cost_per_token": "cost_per_token",
    "priming_msg": "priming_msg",
    "subject_msg": "subject_msg",
    "chat": "chat",
    "base_url": "base_url",
    "token_counting": "token_counting",
    "buffered_decoding": "buffered_decoding",
}
_MULTILINE_KEYS = {"priming_msg", "subject_msg"}


class ConfigError(Exception):
    """The configuration file is missing or invalid."""


def _strip_comment(value: str) -> str:
    """Drop `;` and `#` comments that follow whitespace outside a quoted value.

    A comment runs to the end of its line. Quotes only count when they open
    the value, so apostrophes in unquoted text are left alone.
    """
    kept: list[str] = []
    quote = None
    started = in_comment = False
    prev = " "
    for ch in value:
        if in_comment:
            if ch == "\n":
                in_comment = False
                kept.append(ch)
            continue
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'" and not started:
            quote = ch
        elif ch in ";#" and prev.isspace():
            in_comment = True
            continue
        if not ch.isspace():
            started = True
        kept.append(ch)
        prev = ch
    return "".join(kept)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def load_config(path: str | Path) -> Config:
    """Load and validate the configuration file.

    Args:
        path: INI file path, '~' is expanded

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file is unreadable, incomplete or has invalid values

    Environment variables:
        OPENAI_API_KEY: Used when the file has no openai_token
    """
    config_file = Path(os.path.expanduser(str(path)))
    logger.debug(f"Reading config file: {config_file}")

    parser = configparser.ConfigParser(interpolation=None)
    try:
        read = parser.read(config_file, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"Error reading config file {config_file}: {e}") from e
    if not read:
        raise ConfigError(f"Error reading config file {config_file}: file not found")

    if not parser.has_section(SECTION):
        raise ConfigError("Missing default section in config file")
    section = parser[SECTION]

    values: dict[str, Any] = {}
    for key, raw in section.items():
        field = _KEYS.get(key)
        if field is None:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        value = _unquote(_strip_comment(raw))
        if key in _MULTILINE_KEYS:
            value = trim_lines(value)
        values[field] = value

    if not values.get("token"):
        env_token = os.getenv("OPENAI_API_KEY")
        if not env_token:
            raise ConfigError("Missing openai_token in config file")
        values["token"] = env_token

    try:
        return Config(**values)
    except ValidationError as e:
        errors = "; ".join(
            f"{_ini_key(err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid config file {config_file}: {errors}") from e


def _ini_key(loc: tuple[Any, ...]) -> str:
    field = str(loc[0]) if loc else "?"
    for key, name in _KEYS.items():
        if name == field:
            return key
    return field
