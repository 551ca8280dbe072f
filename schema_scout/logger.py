# File: schema_scout/logger.py
"""Логирование SchemaScout.

Все модули пишут в дочерние логгеры ``SchemaScout.<имя>``::

    from schema_scout.logger import get_logger
    logger = get_logger("crawler")

Обработчики висят только на корневом ``SchemaScout``: поток stderr (stdout
занят JSON-выводом CLI) и, по запросу, файл с ротацией. CLI перенастраивает
их через :func:`configure` по ``--log-level`` / ``--log-file``.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SchemaScout"

LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _build_handlers(log_format: str, log_file: Union[str, Path, None]) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(
                str(log_file),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает корневой логгер проекта и возвращает его.

    ``replace_handlers=False`` добавляет обработчики к уже существующим.
    """
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    if replace_handlers:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()
    for handler in _build_handlers(log_format, log_file):
        root.addHandler(handler)
    root.propagate = False
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Корневой логгер проекта или его потомок ``SchemaScout.<name>``."""
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


logger: logging.Logger = configure()

__all__ = ["logger", "configure", "get_logger", "LOGGER_NAME", "DEFAULT_FORMAT"]
