"""Composable config mods.

Producers register ordered read-modify-write stages ("mods") against a shared
project configuration document. Base mods own the file I/O for one platform
artifact; plain mods transform the working state in between.
"""

from config_plugins.plugin_types import (
    BaseModOptions,
    ExportedConfig,
    ExportedConfigWithProps,
    ForwardedBaseModOptions,
    ModPlatform,
    ModRequest,
    PluginError,
)
from config_plugins.plugins.create_base_mod import (
    BaseModPlugin,
    BaseModProviderMethods,
    MalformedModResultsError,
    ModStageError,
    assert_mod_results,
    base_mod_method_name,
    create_base_mod,
    create_platform_base_mod,
    provider,
    with_generated_base_mods,
)
from config_plugins.plugins.mod_compiler import compile_mods
from config_plugins.plugins.with_mod import with_base_mod, with_mod

__all__ = [
    "BaseModOptions",
    "BaseModPlugin",
    "BaseModProviderMethods",
    "ExportedConfig",
    "ExportedConfigWithProps",
    "ForwardedBaseModOptions",
    "MalformedModResultsError",
    "ModPlatform",
    "ModRequest",
    "ModStageError",
    "PluginError",
    "assert_mod_results",
    "base_mod_method_name",
    "compile_mods",
    "create_base_mod",
    "create_platform_base_mod",
    "provider",
    "with_base_mod",
    "with_generated_base_mods",
    "with_mod",
]
