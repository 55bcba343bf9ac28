from pathlib import Path

import click
import pytest
from loguru import logger

from taskhooks.cli import _parse_log_level_overrides
from taskhooks.utils.logging import ModuleLevels, configure_file_logging


@pytest.fixture(autouse=True)
def _reset_sinks():
    yield
    logger.remove()


def test_overrides_split_default_and_modules():
    overrides = _parse_log_level_overrides(
        ("debug", " taskhooks.hooks = warning ", "taskhooks.utils.powershell=TRACE")
    )
    assert overrides == {
        "default": "debug",
        "taskhooks.hooks": "warning",
        "taskhooks.utils.powershell": "TRACE",
    }


@pytest.mark.parametrize("entry", ["=INFO", "taskhooks.hooks=", "  "])
def test_overrides_reject_incomplete_entries(entry: str):
    with pytest.raises(click.BadOptionUsage):
        _parse_log_level_overrides((entry,))


def test_parse_folds_case_and_trailing_dots():
    levels = ModuleLevels.parse({"TaskHooks.Hooks.": "debug"}, "WARNING")
    assert levels == ModuleLevels(default=30, overrides=(("taskhooks.hooks", 10),))


def test_parse_default_entry_replaces_base_level():
    assert ModuleLevels.parse({"default": "error"}, "INFO").default == 40


def test_parse_rejects_unknown_level():
    with pytest.raises(ValueError, match="Invalid log level 'LOUD'"):
        ModuleLevels.parse({"taskhooks.hooks": "LOUD"}, "INFO")


def test_longest_prefix_wins():
    levels = ModuleLevels.parse(
        {"taskhooks.hooks": "INFO", "taskhooks.hooks.process": "DEBUG"}, "WARNING"
    )
    assert levels.threshold("taskhooks.hooks.process") == 10
    assert levels.threshold("taskhooks.hooks.discovery") == 20
    assert levels.threshold("taskhooks.utils.powershell") == 30
    assert levels.threshold(None) == 30


def test_prefix_matches_whole_segments_only():
    levels = ModuleLevels.parse({"taskhooks.hooks": "DEBUG"}, "WARNING")
    assert levels.threshold("taskhooks.hookshelf") == 30


def test_file_sink_applies_module_thresholds(tmp_path: Path):
    log_file = tmp_path / "logs" / "taskhooks.log"
    configure_file_logging(
        log_file,
        base_level="WARNING",
        module_levels={"taskhooks.hooks.process": "DEBUG"},
    )

    process_logger = logger.patch(lambda r: r.update(name="taskhooks.hooks.process"))
    discovery_logger = logger.patch(lambda r: r.update(name="taskhooks.hooks.discovery"))
    process_logger.debug("spawned hook")
    discovery_logger.info("scanned hooks dir")
    discovery_logger.warning("hooks dir unreadable")
    logger.complete()

    text = log_file.read_text(encoding="utf-8")
    assert "spawned hook" in text
    assert "scanned hooks dir" not in text
    assert "hooks dir unreadable" in text
