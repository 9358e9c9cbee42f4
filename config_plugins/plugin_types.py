"""Core types shared by mods, the chain engine and the mod compiler.

A configuration document is a plain dict. Once it has passed through any mod
registration it carries a ``mods`` mapping keyed by platform, then by mod name,
whose values are the chain callables to evaluate.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypedDict, Union


class ModPlatform(str, Enum):
    """Platforms a mod can target."""

    IOS = "ios"
    ANDROID = "android"


PlatformName = Union[ModPlatform, str]

ExportedConfig = Dict[str, Any]
"""Project configuration document with a ``mods`` mapping."""

ExportedConfigWithProps = Dict[str, Any]
"""Document as seen inside a chain: adds ``mod_request`` and ``mod_results``."""

Mod = Callable[[ExportedConfigWithProps], Awaitable[ExportedConfigWithProps]]
"""One link of a mod chain."""


class PluginError(RuntimeError):
    """Contract failure raised by the chain engine or the mod compiler."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


def platform_name(platform: PlatformName) -> str:
    """Return the plain string name for a platform."""
    if isinstance(platform, ModPlatform):
        return platform.value
    return str(platform)


@dataclass(frozen=True)
class ModRequest:
    """Auxiliary record travelling alongside the document on a chain invocation."""

    platform: str
    mod_name: str
    project_root: Path = Path(".")
    platform_project_root: Path = Path(".")
    introspect: bool = False
    next_mod: Optional[Mod] = None

    def detach_next_mod(self) -> Tuple[Mod, "ModRequest"]:
        """Split the continuation off the request.

        Returns the continuation and a copy of the request without it, so the
        copy can be forwarded down the chain without exposing this link's
        continuation.

        Raises:
            PluginError: When no continuation was supplied.
        """
        if self.next_mod is None:
            raise PluginError(
                "MISSING_NEXT_MOD",
                f"Mod request for `mods.{self.platform}.{self.mod_name}` has no next mod",
            )
        return self.next_mod, replace(self, next_mod=None)


class ForwardedBaseModOptions(TypedDict, total=False):
    save_to_internal: Optional[bool]
    skip_empty_mod: Optional[bool]


@dataclass
class BaseModOptions:
    """Stage configuration handed to the chain engine."""

    platform: str
    mod: str
    action: Mod
    skip_empty_mod: bool = True
    save_to_internal: bool = False
    is_provider: bool = False
    is_introspective: bool = False
