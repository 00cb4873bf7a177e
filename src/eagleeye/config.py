"""Configuration loading utilities for the watcher."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml # type: ignore

from .actions import Action, PrintAction
from .command import CommandAction

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""


class ActionType(str, Enum):
    """Action kinds a watcher definition may request."""

    COMMAND = "command"
    PRINT = "print"


@dataclass
class SettingsConfig:
    """Options shared by every watcher."""

    quiet: bool = False


@dataclass
class WatcherConfig:
    """A single watcher definition from the configuration file."""

    action_type: str
    path: Path
    execute: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level configuration structure."""

    settings: SettingsConfig = field(default_factory=SettingsConfig)
    watchers: List[WatcherConfig] = field(default_factory=list)


WatchPlan = List[Tuple[Path, List[Action]]]


def load_config(path: Path) -> AppConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc

    return parse_config(data, config_path=path)


def parse_config(data: Any, *, config_path: Optional[Path] = None) -> AppConfig:
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    settings = _parse_settings(data.get("settings"))
    watchers = _parse_watchers(data.get("watchers"), config_path=config_path)
    return AppConfig(settings=settings, watchers=watchers)


def build_watch_plan(config: AppConfig) -> WatchPlan:
    """Turn watcher definitions into ``(path, actions)`` registrations.

    Watchers sharing a path are merged into one entry, keeping file order.
    """

    plan: Dict[Path, List[Action]] = {}
    for index, watcher in enumerate(config.watchers):
        actions = plan.setdefault(watcher.path, [])
        action = _build_action(watcher, quiet=config.settings.quiet, index=index)
        if action is not None:
            actions.append(action)
    return list(plan.items())


def _build_action(watcher: WatcherConfig, *, quiet: bool, index: int) -> Optional[Action]:
    try:
        action_type = ActionType(watcher.action_type)
    except ValueError:
        logger.warning(
            "watchers[%s] has unsupported action_type '%s'; no action bound to %s",
            index,
            watcher.action_type,
            watcher.path,
        )
        return None

    if action_type is ActionType.COMMAND:
        return CommandAction(watcher.execute or "", quiet)
    return PrintAction()


def _parse_settings(raw: Any) -> SettingsConfig:
    if raw is None:
        return SettingsConfig()
    if not isinstance(raw, dict):
        raise ConfigError("'settings' section must be a mapping")

    quiet = raw.get("quiet", False)
    if quiet is None:
        quiet = False
    if not isinstance(quiet, bool):
        raise ConfigError("settings.quiet must be a boolean")
    return SettingsConfig(quiet=quiet)


def _parse_watchers(raw: Any, *, config_path: Optional[Path]) -> List[WatcherConfig]:
    if raw is None or raw == []:
        raise ConfigError("No watchers defined in config file")
    if not isinstance(raw, list):
        raise ConfigError("'watchers' section must be a list")

    watchers: List[WatcherConfig] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"watchers[{index}] must be a mapping")

        action_type = item.get("action_type")
        path_raw = item.get("path")
        execute = item.get("execute")

        if not isinstance(action_type, str):
            raise ConfigError(f"watchers[{index}].action_type must be a string")
        if not isinstance(path_raw, str) or not path_raw:
            raise ConfigError(f"watchers[{index}].path must be a string")
        if execute is not None and not isinstance(execute, str):
            raise ConfigError(f"watchers[{index}].execute must be a string")
        if action_type == ActionType.COMMAND.value and not (execute or "").strip():
            raise ConfigError(f"watchers[{index}].execute is required for command watchers")

        path = Path(path_raw).expanduser()
        if not path.is_absolute() and config_path is not None:
            path = config_path.parent / path

        watcher = WatcherConfig(action_type=action_type, path=path, execute=execute)
        logger.info("Loaded watcher for %s (action_type=%s)", watcher.path, watcher.action_type)
        watchers.append(watcher)

    return watchers
