"""
Centralized Configuration
=========================
Centralized configuration values and constants for the mod pipeline.

This module provides:
- Base-mod defaults applied when a caller omits a flag
- Diagnostic settings (debug logging, error snapshot size)
- Tracing settings
"""

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class ModsConfig:
    """Base-mod configuration."""

    # Emit a debug line for every chain link that is entered
    DEBUG: bool = _env_flag("CONFIG_PLUGINS_DEBUG", "false")

    # Flag defaults for create_base_mod when the caller does not pass them
    SKIP_EMPTY_MOD_DEFAULT: bool = True
    SAVE_TO_INTERNAL_DEFAULT: bool = False

    # Max characters of the serialized snapshot in malformed result errors (0 = no limit)
    SNAPSHOT_MAX_CHARS: int = int(os.getenv("CONFIG_PLUGINS_SNAPSHOT_MAX_CHARS", "0"))


@dataclass(frozen=True)
class CompilerConfig:
    """Mod compiler configuration."""

    # Sort order for well-known mod names; anything else sorts as 0 and keeps
    # its registration order.
    DANGEROUS_PRECEDENCE: int = -2
    FINALIZED_PRECEDENCE: int = 1


@dataclass(frozen=True)
class TracingConfig:
    """Tracing configuration."""

    SERVICE_NAME: str = "config-plugins"
    OTLP_ENDPOINT: str = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
    ENABLED: bool = os.getenv("ENABLE_TRACING", "false").lower() == "true"


# Global singleton instances
MODS = ModsConfig()
COMPILER = CompilerConfig()
TRACING = TracingConfig()
