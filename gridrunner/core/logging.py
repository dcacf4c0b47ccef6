"""Logging setup for gridrunner (loguru)."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TextIO

from loguru import logger

RUN_LOG_FORMAT = (
    "{time:HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"
)

PACKAGE_PREFIX = "gridrunner."


def _normalize_scopes(debug_scopes: Iterable[str]) -> tuple[str, ...]:
    """Qualify bare scopes such as ``core.engine`` with the package name."""
    scopes: list[str] = []
    for raw in debug_scopes:
        scope = raw.strip()
        if not scope:
            continue
        if scope != "gridrunner" and not scope.startswith(PACKAGE_PREFIX):
            scope = PACKAGE_PREFIX + scope
        scopes.append(scope)
    return tuple(scopes)


def scope_filter(scopes: tuple[str, ...]) -> Callable[[Mapping[str, Any]], bool]:
    """Build a loguru filter passing DEBUG records from the given modules."""

    def _accept(record: Mapping[str, Any]) -> bool:
        if getattr(record.get("level"), "name", None) != "DEBUG":
            return False
        name = record.get("name") or ""
        return any(name == scope or name.startswith(f"{scope}.") for scope in scopes)

    return _accept


def configure_logging(
    level: str = "INFO",
    *,
    debug_scopes: Iterable[str] = (),
    colorize: bool = False,
    sink: TextIO | None = None,
) -> tuple[int, ...]:
    """Replace loguru's handlers with gridrunner's.

    Records at ``level`` and above go to ``sink`` (stderr by default, where
    the results table is drawn as well). DEBUG records from ``debug_scopes``
    are let through on a second handler when ``level`` is higher than DEBUG.
    Returns the handler ids so callers can remove them again.
    """
    target = sink if sink is not None else sys.stderr
    logger.remove()
    handler_ids = [
        logger.add(target, level=level, format=RUN_LOG_FORMAT, colorize=colorize)
    ]

    scopes = _normalize_scopes(debug_scopes)
    if scopes and level.upper() != "DEBUG":
        handler_ids.append(
            logger.add(
                target,
                level="DEBUG",
                format=RUN_LOG_FORMAT,
                colorize=colorize,
                filter=scope_filter(scopes),
            )
        )
    return tuple(handler_ids)
