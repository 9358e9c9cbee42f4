"""Mod chain engine.

Mods for one ``(platform, mod)`` pair form a chain. Registering a mod wraps
whatever chain is already registered; the newest link runs first and reaches
older links through ``mod_request.next_mod``. Base mods (providers) are
registered last so they sit outermost: they read the resource, hand the
working state down the chain, then write what comes back.
"""

from __future__ import annotations

import inspect
from dataclasses import replace
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

from config_plugins.config import MODS
from config_plugins.plugin_types import (
    BaseModOptions,
    ExportedConfig,
    ExportedConfigWithProps,
    Mod,
    ModRequest,
    PlatformName,
    PluginError,
    platform_name,
)


async def maybe_await(value: Any) -> Any:
    """Await ``value`` when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def noop_mod(config: ExportedConfigWithProps) -> ExportedConfigWithProps:
    return config


def ensure_mods(config: ExportedConfig, platform: str) -> ExportedConfig:
    """Return a copy of ``config`` whose ``mods[platform]`` mapping is its own."""
    mods = dict(config.get("mods") or {})
    mods[platform] = dict(mods.get(platform) or {})
    return {**config, "mods": mods}


def save_to_internal_object(
    config: ExportedConfigWithProps, platform: str, mod_name: str, results: Any
) -> ExportedConfigWithProps:
    """Return a copy of ``config`` with ``results`` cached under ``_internal``."""
    internal = dict(config.get("_internal") or {})
    mod_results = dict(internal.get("mod_results") or {})
    mod_results[platform] = {**(mod_results.get(platform) or {}), mod_name: results}
    internal["mod_results"] = mod_results
    return {**config, "_internal": internal}


class InterceptingMod:
    """Chain link that supplies ``next_mod`` to an action."""

    def __init__(self, options: BaseModOptions, next_mod: Mod):
        self.platform = options.platform
        self.mod = options.mod
        self.action = options.action
        self.save_to_internal = options.save_to_internal
        self.is_provider = options.is_provider
        self.is_introspective = options.is_introspective
        self.next_mod = next_mod

    async def __call__(self, config: ExportedConfigWithProps) -> ExportedConfigWithProps:
        mod_request = config.get("mod_request") if isinstance(config, Mapping) else None
        if not isinstance(mod_request, ModRequest):
            raise PluginError(
                "MISSING_MOD_REQUEST",
                f"Mod `mods.{self.platform}.{self.mod}` was invoked without a mod request",
            )

        if MODS.DEBUG:
            logger.debug(
                "Run mod mods.{}.{} (provider={})", self.platform, self.mod, self.is_provider
            )

        results = await self.action(
            {**config, "mod_request": replace(mod_request, next_mod=self.next_mod)}
        )

        if self.save_to_internal and isinstance(results, Mapping):
            results = save_to_internal_object(
                dict(results), self.platform, self.mod, results.get("mod_results")
            )
        return results

    def __repr__(self) -> str:
        return f"InterceptingMod(mods.{self.platform}.{self.mod}, provider={self.is_provider})"


def with_base_mod(config: ExportedConfig, options: BaseModOptions) -> ExportedConfig:
    """Register ``options.action`` as the outermost link of its chain.

    When no chain is registered yet and ``skip_empty_mod`` is set, nothing is
    registered; otherwise a no-op chain stands in for the missing one.

    Returns:
        A new document; ``config`` is left untouched.
    """
    platform = platform_name(options.platform)
    options = replace(options, platform=platform)
    config = ensure_mods(config, platform)

    intercepted_mod = get_mod(config, platform, options.mod)
    if intercepted_mod is None:
        if options.skip_empty_mod:
            logger.debug("Skip empty mod mods.{}.{}", platform, options.mod)
            return config
        intercepted_mod = noop_mod

    config["mods"][platform][options.mod] = InterceptingMod(options, intercepted_mod)
    return config


def with_mod(
    config: ExportedConfig,
    *,
    platform: PlatformName,
    mod: str,
    action: Callable[[ExportedConfigWithProps], Any],
) -> ExportedConfig:
    """Register a transformer for ``mods.<platform>.<mod>``.

    ``action`` receives the document with the working state in ``mod_results``
    and returns the document to pass further down the chain. It may be sync
    or async.
    """

    async def transform(config: ExportedConfigWithProps) -> ExportedConfigWithProps:
        next_mod, mod_request = config["mod_request"].detach_next_mod()
        results = await maybe_await(action({**config, "mod_request": mod_request}))
        if isinstance(results, Mapping) and "mod_request" not in results:
            results = {**results, "mod_request": mod_request}
        return await next_mod(results)

    return with_base_mod(
        config,
        BaseModOptions(
            platform=platform_name(platform),
            mod=mod,
            action=transform,
            skip_empty_mod=False,
            is_provider=False,
        ),
    )


def get_mod(config: ExportedConfig, platform: PlatformName, mod: str) -> Optional[Mod]:
    """Return the chain registered for ``mods.<platform>.<mod>``, if any."""
    mods: Dict[str, Any] = config.get("mods") or {}
    return (mods.get(platform_name(platform)) or {}).get(mod)
