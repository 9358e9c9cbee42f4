"""Mod compiler.

Evaluates every chain registered under ``config["mods"]``, one platform and
one mod at a time. Each chain receives the document produced by the previous
one, so mods registered earlier are visible to the ones that follow.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from config_plugins.config import COMPILER
from config_plugins.plugin_types import (
    ExportedConfig,
    Mod,
    ModPlatform,
    ModRequest,
    PlatformName,
    PluginError,
    platform_name,
)
from config_plugins.plugins.create_base_mod import assert_mod_results
from config_plugins.tracing import init_tracing


def _precedence(mod_name: str) -> int:
    if mod_name == "dangerous":
        return COMPILER.DANGEROUS_PRECEDENCE
    if mod_name == "finalized":
        return COMPILER.FINALIZED_PRECEDENCE
    return 0


def sort_mods(mods: Dict[str, Mod]) -> List[Tuple[str, Mod]]:
    """Order a platform's mods: ``dangerous`` first, ``finalized`` last, the rest as registered."""
    # sorted() is stable, so equal precedence keeps registration order
    return sorted(mods.items(), key=lambda item: _precedence(item[0]))


async def compile_mods(
    config: ExportedConfig,
    *,
    project_root: Union[str, Path],
    platforms: Optional[Union[PlatformName, Iterable[PlatformName]]] = None,
    introspect: bool = False,
    assert_missing_mods_providers: bool = True,
) -> ExportedConfig:
    """Run all registered mod chains and return the final document.

    Args:
        config: Document holding the registered ``mods``.
        project_root: Root folder of the project; platform folders sit beneath it.
        platforms: Restrict evaluation to these platforms (a single platform is accepted).
            All when omitted.
        introspect: Only run chains that declare themselves introspective.
        assert_missing_mods_providers: Reject chains whose outermost link is not a provider.

    Returns:
        The document after every chain ran, without ``mod_request``/``mod_results``.

    Raises:
        PluginError: When a chain has no provider and ``assert_missing_mods_providers`` is set.
        MalformedModResultsError: When a chain returns something that is not a config.
    """
    init_tracing()

    root = Path(project_root)
    if isinstance(platforms, (str, ModPlatform)):
        platforms = [platforms]
    allowed = {platform_name(p) for p in platforms} if platforms is not None else None

    for platform, mods in list((config.get("mods") or {}).items()):
        if allowed is not None and platform not in allowed:
            logger.debug("Skip platform {} (not requested)", platform)
            continue

        for mod_name, mod in sort_mods(dict(mods or {})):
            if assert_missing_mods_providers and not getattr(mod, "is_provider", False):
                raise PluginError(
                    "MISSING_PROVIDER",
                    f'Initial base modifier for "{platform}.{mod_name}" is not a provider '
                    "and therefore will not provide mod results to child mods",
                )

            if introspect and not getattr(mod, "is_introspective", False):
                logger.debug("Skip non-introspective mod mods.{}.{}", platform, mod_name)
                continue

            mod_request = ModRequest(
                platform=platform,
                mod_name=mod_name,
                project_root=root,
                platform_project_root=root / platform,
                introspect=introspect,
            )
            logger.debug("Evaluate mods.{}.{}", platform, mod_name)
            results: Any = await mod({**config, "mod_results": None, "mod_request": mod_request})

            config = dict(assert_mod_results(results, platform, mod_name))
            config.pop("mod_results", None)
            config.pop("mod_request", None)

    return config
