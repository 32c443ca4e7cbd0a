"""Logging configuration and utilities."""

import logging
import logging.config
import yaml
import os
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_LOG_CONFIG = "config/logging.yaml"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _level(log_level: Optional[str]) -> int:
    return getattr(logging, log_level.upper(), logging.INFO) if log_level else logging.INFO


def _basic_config(log_level: Optional[str], logs_dir: str) -> None:
    logging.basicConfig(
        level=_level(log_level),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(Path(logs_dir) / "app.log", encoding="utf-8")
        ]
    )


def _override_levels(config: Dict[str, Any], log_level: str) -> None:
    level = log_level.upper()
    config.setdefault('root', {})['level'] = level
    for name, logger_config in config.get('loggers', {}).items():
        # Third-party loggers keep their own level
        if name.startswith('sheetjira'):
            logger_config['level'] = level


def setup_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    logs_dir: str = "logs"
) -> None:
    """
    Configure logging from a YAML dictConfig file.

    Falls back to console + `logs/app.log` when the file is missing or
    cannot be applied.

    Args:
        config_path: Path to the logging configuration (default config/logging.yaml)
        log_level: Override for the root and sheetjira loggers
        logs_dir: Directory for log files
    """
    Path(logs_dir).mkdir(exist_ok=True)
    config_path = config_path or DEFAULT_LOG_CONFIG

    if not os.path.exists(config_path):
        _basic_config(log_level, logs_dir)
        logging.warning(f"Logging config file not found at {config_path}, using basic configuration")
        return

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
        if log_level:
            _override_levels(config, log_level)
        logging.config.dictConfig(config)
    except (OSError, ValueError, KeyError, TypeError, AttributeError, yaml.YAMLError) as e:
        _basic_config(log_level, logs_dir)
        logging.warning(f"Failed to load logging config from {config_path}: {e}")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class StructuredLogger:
    """
    Logger that appends `key=value` context to every message.

    Context is also passed as `extra`, so formatters can pick fields such as
    `tab` or `row` directly.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self._context = dict(context or {})

    def with_context(self, **kwargs) -> "StructuredLogger":
        """Return a logger with additional context."""
        return StructuredLogger(self.logger, {**self._context, **kwargs})

    def _log(self, level: int, message: str, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if self._context:
            context_str = " | ".join(f"{k}={v}" for k, v in self._context.items())
            message = f"{message} | {context_str}"
        self.logger.log(level, message, extra={**self._context, **kwargs})

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, **kwargs)


def get_structured_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(get_logger(name))
