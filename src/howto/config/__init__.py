from .defaults import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_PRIMING_MSG,
    DEFAULT_SUBJECT_MSG,
    ini_format_multiline_str,
)
from .loader import ConfigError, load_config
from .models import Config

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_PRIMING_MSG",
    "DEFAULT_SUBJECT_MSG",
    "ini_format_multiline_str",
    "ConfigError",
    "load_config",
    "Config",
]
