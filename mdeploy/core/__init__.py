"""Result values, exit codes and ``mdeploy.toml`` loading."""

from .config import Config, ConfigError, load_config, load_config_or_default
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    "Config",
    "ConfigError",
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "load_config",
    "load_config_or_default",
]
