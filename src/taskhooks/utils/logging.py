"""Logging for taskhooks: one loguru file sink filtered by per-module levels.

The library itself never adds a sink. Only the command line calls
:func:`configure_file_logging`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record
else:  # pragma: no cover - runtime fallback for typing-only import
    Record = dict[str, Any]  # type: ignore[assignment]

DEFAULT_LEVEL_KEY = "default"

logger.remove()


@dataclass(frozen=True, slots=True)
class ModuleLevels:
    """Minimum level per dotted module prefix, plus a default.

    Prefixes are matched case-insensitively and the longest one wins, so
    ``taskhooks.hooks.process=DEBUG`` overrides ``taskhooks.hooks=WARNING``.
    """

    default: int
    overrides: tuple[tuple[str, int], ...] = ()

    @classmethod
    def parse(cls, levels: Mapping[str, str], base_level: str) -> ModuleLevels:
        """Build from level names. A ``default`` entry replaces `base_level`.

        Raises:
            ValueError: If a level name is unknown to loguru.
        """
        default = _level_no(base_level)
        overrides: dict[str, int] = {}
        for module, level_name in levels.items():
            key = module.strip().rstrip(".").lower() or DEFAULT_LEVEL_KEY
            if key == DEFAULT_LEVEL_KEY:
                default = _level_no(level_name)
            else:
                overrides[key] = _level_no(level_name)
        ordered = sorted(overrides.items(), key=lambda item: len(item[0]), reverse=True)
        return cls(default=default, overrides=tuple(ordered))

    def threshold(self, module: str | None) -> int:
        if module:
            module = module.lower()
            for prefix, level_no in self.overrides:
                if module == prefix or module.startswith(prefix + "."):
                    return level_no
        return self.default

    def accepts(self, record: Record) -> bool:
        return record["level"].no >= self.threshold(record["name"])


def _level_no(level_name: str) -> int:
    try:
        return logger.level(level_name.strip().upper()).no
    except ValueError as exc:
        raise ValueError(f"Invalid log level '{level_name}'") from exc


def configure_file_logging(
    log_file: Path,
    *,
    base_level: str,
    module_levels: Mapping[str, str] | None = None,
    rotation: str = "06:00",
    retention: str = "10 days",
) -> ModuleLevels:
    """Replace all sinks with a rotating file sink at `log_file`.

    Raises:
        ValueError: If a level name is unknown to loguru.
    """
    levels = ModuleLevels.parse(module_levels or {}, base_level)
    logger.remove()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        level="TRACE",
        rotation=rotation,
        retention=retention,
        filter=levels.accepts,
    )
    logger.debug("Configured log levels: {levels}", levels=levels)
    return levels
