"""Centralized library configuration using Pydantic Settings (v2).

This module exposes a cached `Settings` factory that reads from:
- Real environment variables (highest precedence)
- `.env` files in the working directory: .env, .env.local

Every `Prefs` context takes its limits (class-name length, slot batch size,
recursion bound) from a `Settings` instance, either passed explicitly or
obtained from `load_settings()`.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed library configuration loaded from env and `.env` files.

    Attributes
    ----------
    log_level : LogLevelName
        Log level for every ``niftyprefs.*`` logger; maps from `NIFTYPREFS_LOG_LEVEL`.
    max_classname : int
        Maximum length of a class name; maps from `NIFTYPREFS_MAX_CLASSNAME`.
    slot_batch : int
        Number of slots a registry grows by when it runs out of free slots.
    max_slots : int
        Hard cap on slots per registry (0 means unlimited).
    max_depth : int
        Maximum nesting of snapshot/restore calls through one context.
    xml_indent : str
        Indentation used when encoding node trees as XML text.
    """

    log_level: LogLevelName = Field(default="INFO", alias="NIFTYPREFS_LOG_LEVEL")
    max_classname: int = Field(default=64, ge=1, alias="NIFTYPREFS_MAX_CLASSNAME")
    slot_batch: int = Field(default=64, ge=1, alias="NIFTYPREFS_SLOT_BATCH")
    max_slots: int = Field(default=0, ge=0, alias="NIFTYPREFS_MAX_SLOTS")
    max_depth: int = Field(default=256, ge=1, alias="NIFTYPREFS_MAX_DEPTH")
    xml_indent: str = Field(default="  ", alias="NIFTYPREFS_XML_INDENT")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests can force a rebuild via `load_settings.cache_clear()` after
    mutating `os.environ`.
    """
    return Settings()


def get_logger(name: str = "niftyprefs") -> logging.Logger:
    """Return a logger configured to the current `log_level` setting."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger


__all__ = ["LogLevelName", "Settings", "get_logger", "load_settings"]
