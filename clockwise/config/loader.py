"""
Configuration loader with environment variable handling.

Loads configuration from:
1. config.yaml (optional)
2. .env.local / .env (loaded into process env, never overriding it)
3. Environment variables (highest priority)
"""

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv

from clockwise.logging import setup_logging


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Priority (highest to lowest):
    1. OS Environment variables
    2. .env.local / .env files
    3. config.yaml
    """

    ENV_START_TIME = "CLOCKWISE_START_TIME"
    ENV_EMIT_EVENTS = "CLOCKWISE_EMIT_EVENTS"
    ENV_LOG_LEVEL = "CLOCKWISE_LOG_LEVEL"
    ENV_LOG_DIR = "CLOCKWISE_LOG_DIR"

    ENV_FILES = (".env.local", ".env")
    TRUTHY = frozenset({"1", "true", "yes", "y", "on"})

    def __init__(self, config_dir: Path = Path("config"), require_file: bool = False):
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / "config.yaml"
        self.require_file = require_file

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources.

        Returns:
            Merged configuration dictionary

        Raises:
            FileNotFoundError: If config.yaml is required and missing
            ValueError: If config.yaml does not hold a mapping
        """
        config: Dict[str, Any] = {}

        if self.config_file.exists():
            with open(self.config_file, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
            if loaded is not None and not isinstance(loaded, dict):
                raise ValueError(f"Configuration file must contain a mapping: {self.config_file}")
            config = loaded or {}
        elif self.require_file:
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        self.load_env_files()

        clock = config.setdefault("clock", {}) or {}
        config["clock"] = clock
        start_time = os.getenv(self.ENV_START_TIME, "").strip()
        if start_time:
            clock["start_time"] = start_time
        if os.getenv(self.ENV_EMIT_EVENTS) is not None:
            clock["emit_events"] = self.env_flag(self.ENV_EMIT_EVENTS)

        logging_cfg = config.setdefault("logging", {}) or {}
        config["logging"] = logging_cfg
        log_level = os.getenv(self.ENV_LOG_LEVEL, "").strip()
        if log_level:
            logging_cfg["log_level"] = log_level.upper()
            logging_cfg["console_level"] = log_level.upper()
        log_dir = os.getenv(self.ENV_LOG_DIR, "").strip()
        if log_dir:
            logging_cfg["log_dir"] = log_dir

        return config

    def load_env_files(self) -> List[Path]:
        """
        Load .env.local and .env from the config directory, then the working
        directory. Variables already in the process environment win.

        Returns:
            The env files actually read, in load order
        """
        loaded: List[Path] = []
        seen = set()
        for directory in (self.config_dir, Path.cwd()):
            for name in self.ENV_FILES:
                path = (directory / name).resolve()
                if path in seen or not path.is_file():
                    continue
                seen.add(path)
                load_dotenv(dotenv_path=path, override=False)
                loaded.append(path)
        return loaded

    @classmethod
    def env_flag(cls, name: str, default: bool = False) -> bool:
        """Read a boolean toggle such as CLOCKWISE_EMIT_EVENTS=on."""
        value = os.getenv(name)
        if value is None:
            return default
        return value.strip().lower() in cls.TRUTHY

    def load_and_validate(self):
        """
        Load and validate configuration.

        Returns:
            ConfigSchema instance
        """
        from .schema import ConfigSchema

        config_dict = self.load()

        try:
            return ConfigSchema(**config_dict)
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}") from e


def load_config(config_dir: Path = Path("config")):
    """
    Convenience function to load and validate configuration.

    Returns:
        Validated ConfigSchema instance
    """
    return ConfigLoader(config_dir).load_and_validate()


def configure_logging(config) -> None:
    """Initialize logging from a validated ConfigSchema."""
    cfg = config.logging
    setup_logging(
        log_dir=cfg.log_dir,
        log_level=cfg.log_level.value,
        console_level=cfg.console_level.value,
        json_logs=cfg.json_logs,
        max_bytes=cfg.max_bytes,
        backup_count=cfg.backup_count,
        force=True,
    )
