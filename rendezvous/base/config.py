# ============================================================================
# rendezvous/base/config.py
# Application Configuration Management
# ============================================================================
#
# PURPOSE:
# Defines the settings that change how the event coordinator behaves
# (debounce window, locking, callback error isolation, pattern syntax) and
# how Rendezvous logs. Settings can be built in code or read from the
# environment (RENDEZVOUS_DEBOUNCE_MS=250, RENDEZVOUS_LOG_LEVEL=DEBUG, ...).
#
# KEY CONCEPTS:
# 1. Frozen dataclasses: config objects are immutable once built
# 2. Environment variables: from_env() reads RENDEZVOUS_* overrides
# 3. Explicit injection: EventCoordinator takes a CoordinatorConfig argument,
#    the module-level accessor below is only a convenience for applications
#
# ============================================================================

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from rendezvous.errors import ErrorCode, RendezvousError

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


# ============================================================================
# Coordinator Configuration
# ============================================================================
# Controls the barrier engine itself.

@dataclass(frozen=True)
class CoordinatorConfig:
    # Minimum time between two fires of the same registration (milliseconds)
    # 500 ms swallows duplicate near-simultaneous completion signals
    debounce_window_ms: float = 500.0

    # Guard every public operation with one reentrant lock
    # False = single event loop / single owning thread (default)
    # True = coordinator is shared between threads
    thread_safe: bool = False

    # Should one failing callback stop the others?
    # True = log the traceback and keep dispatching
    # False = let the exception reach the caller of trigger()
    isolate_callback_errors: bool = True

    # Treat plain strings of the form "/body/flags" as regular expressions
    # in trigger_similar(). Selector.literal() always bypasses this.
    legacy_pattern_syntax: bool = True

    def __post_init__(self):
        if self.debounce_window_ms < 0:
            raise RendezvousError(
                ErrorCode.CONFIG_INVALID,
                "debounce_window_ms must not be negative",
                details={"debounce_window_ms": self.debounce_window_ms},
            )


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    # DEBUG shows every fire / teardown, INFO is quiet during normal operation
    level: str = "INFO"

    # %(name)s = which module logged this (e.g., "rendezvous.events.coordinator")
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # Optional log file; None = console only
    file_path: Optional[Path] = None

    # Rotation settings for file_path
    max_file_size_mb: int = 10
    backup_count: int = 5

    def __post_init__(self):
        if not isinstance(logging.getLevelName(self.level.upper()), int):
            raise RendezvousError(
                ErrorCode.CONFIG_INVALID,
                f"Unknown log level: {self.level}",
                details={"level": self.level},
            )


# ============================================================================
# Master Configuration Container
# ============================================================================

@dataclass(frozen=True)
class RendezvousConfig:
    coordinator: CoordinatorConfig = field(default_factory=CoordinatorConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "RendezvousConfig":
        """Build a config from RENDEZVOUS_* environment variables."""
        coordinator = CoordinatorConfig(
            debounce_window_ms=_env_float("RENDEZVOUS_DEBOUNCE_MS", 500.0),
            thread_safe=_env_bool("RENDEZVOUS_THREAD_SAFE", False),
            isolate_callback_errors=_env_bool("RENDEZVOUS_ISOLATE_CALLBACK_ERRORS", True),
            legacy_pattern_syntax=_env_bool("RENDEZVOUS_LEGACY_PATTERNS", True),
        )

        log_file = os.getenv("RENDEZVOUS_LOG_FILE")
        log = LogConfig(
            level=os.getenv("RENDEZVOUS_LOG_LEVEL", "INFO"),
            file_path=Path(log_file) if log_file else None,
        )

        return cls(coordinator=coordinator, log=log)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise RendezvousError(
        ErrorCode.CONFIG_PARSE_ERROR,
        f"{name} must be a boolean, got {raw!r}",
        details={"variable": name, "value": raw},
    )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise RendezvousError(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"{name} must be a number, got {raw!r}",
            details={"variable": name, "value": raw},
        ) from None


# ============================================================================
# Global Configuration Accessor
# ============================================================================

_config: Optional[RendezvousConfig] = None


def get_config() -> RendezvousConfig:
    """
    Get the application-wide configuration instance.

    Loaded from the environment on first use. Coordinators do not read this
    implicitly; pass get_config().coordinator to them when wanted.
    """
    global _config
    if _config is None:
        _config = RendezvousConfig.from_env()
    return _config


def set_config(config: Optional[RendezvousConfig]) -> None:
    """Replace (or with None, forget) the application-wide configuration."""
    global _config
    _config = config


def setup_logging(config: Optional[RendezvousConfig] = None) -> None:
    """
    Configure Python's logging system based on our settings.

    Args:
        config: Optional config to use (defaults to get_config())
    """
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_path is not None:
        from logging.handlers import RotatingFileHandler
        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(RotatingFileHandler(
            cfg.log.file_path,
            maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
            backupCount=cfg.log.backup_count,
        ))

    logging.basicConfig(
        level=getattr(logging, cfg.log.level.upper()),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
    logger.debug(f"[Config] Logging configured at {cfg.log.level.upper()}")
