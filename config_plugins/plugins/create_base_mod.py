"""Base mods.

A base mod wraps a provider triple ``(get_file_path, read, write)`` into the
outermost link of a mod chain. For each run it:

1. locates the resource with ``get_file_path``,
2. loads the working state with ``read``,
3. hands the state down the chain via ``next_mod``,
4. validates the document that comes back,
5. persists it with ``write``.

Any failure is re-raised as :class:`ModStageError` carrying the stage identity,
so an error raised deep inside nested chains reads as a breadcrumb trail of
``[platform.mod]: methodName:`` prefixes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from loguru import logger

from config_plugins.config import MODS
from config_plugins.plugin_types import (
    BaseModOptions,
    ExportedConfig,
    ExportedConfigWithProps,
    ForwardedBaseModOptions,
    PlatformName,
    platform_name,
)
from config_plugins.plugins.with_mod import maybe_await, with_base_mod
from config_plugins.tracing import set_span_attributes, stage_span
from config_plugins.utils.schema_validation import validate_forwarded_base_mod_options


GetFilePath = Callable[[ExportedConfigWithProps, Mapping[str, Any]], Union[str, Awaitable[str]]]
ReadMod = Callable[[str, ExportedConfigWithProps, Mapping[str, Any]], Any]
WriteMod = Callable[[str, ExportedConfigWithProps, Mapping[str, Any]], Any]


class MalformedModResultsError(ValueError):
    """A chain returned something that is not a project config."""


class ModStageError(RuntimeError):
    """Failure inside a base mod, attributed to the stage it happened in."""

    def __init__(self, platform: str, mod_name: str, method_name: str, cause: BaseException):
        self.platform = platform
        self.mod_name = mod_name
        self.method_name = method_name
        self.cause = cause
        super().__init__(f"[{platform}.{mod_name}]: {method_name}: {cause}")


@dataclass(frozen=True)
class BaseModProviderMethods:
    """How to locate, read and write the resource behind one mod."""

    get_file_path: GetFilePath
    read: ReadMod
    write: WriteMod

    def __post_init__(self) -> None:
        for field_name in ("get_file_path", "read", "write"):
            if not callable(getattr(self, field_name)):
                raise TypeError(f"Provider method `{field_name}` must be callable")


def provider(
    methods: Optional[BaseModProviderMethods] = None,
    *,
    get_file_path: Optional[GetFilePath] = None,
    read: Optional[ReadMod] = None,
    write: Optional[WriteMod] = None,
) -> BaseModProviderMethods:
    """Declare a provider triple.

    Returns ``methods`` unchanged when given, otherwise builds a
    :class:`BaseModProviderMethods` from the keyword arguments.
    """
    if methods is not None:
        if not isinstance(methods, BaseModProviderMethods):
            raise TypeError("provider() expects BaseModProviderMethods")
        return methods
    return BaseModProviderMethods(get_file_path=get_file_path, read=read, write=write)


def assert_mod_results(results: Any, platform: str, mod_name: str) -> Any:
    """Return ``results`` when it is a project config with ``mods``.

    Raises:
        MalformedModResultsError: When ``results`` is falsy, not a mapping, or has no ``mods``.
            An empty ``mods`` mapping is accepted; any other non-mapping ``mods`` is not.
    """
    if not isinstance(results, Mapping) or not isinstance(results.get("mods"), Mapping):
        try:
            snapshot = json.dumps(results, default=repr)
        except (TypeError, ValueError):
            snapshot = repr(results)
        if MODS.SNAPSHOT_MAX_CHARS and len(snapshot) > MODS.SNAPSHOT_MAX_CHARS:
            snapshot = snapshot[: MODS.SNAPSHOT_MAX_CHARS] + "..."
        raise MalformedModResultsError(
            f"Mod `mods.{platform}.{mod_name}` evaluated to an object that is not a "
            f"valid project config. Instead got: {snapshot}"
        )
    return results


def _upper_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def base_mod_method_name(platform: PlatformName, mod_name: str) -> str:
    """Return ``with<Platform><ModName>BaseMod``."""
    return f"with{_upper_first(platform_name(platform))}{_upper_first(mod_name)}BaseMod"


class BaseModPlugin:
    """Config plugin that registers one base mod when applied to a config."""

    def __init__(
        self,
        *,
        method_name: str,
        platform: PlatformName,
        mod_name: str,
        methods: BaseModProviderMethods,
    ):
        self.name = method_name
        self.platform = platform_name(platform)
        self.mod_name = mod_name
        self.methods = methods

    def __call__(
        self, config: ExportedConfig, props: Optional[ForwardedBaseModOptions] = None
    ) -> ExportedConfig:
        props = dict(props or {})
        skip_empty_mod = props.get("skip_empty_mod")
        save_to_internal = props.get("save_to_internal")

        return with_base_mod(
            config,
            BaseModOptions(
                platform=self.platform,
                mod=self.mod_name,
                skip_empty_mod=MODS.SKIP_EMPTY_MOD_DEFAULT if skip_empty_mod is None else skip_empty_mod,
                save_to_internal=(
                    MODS.SAVE_TO_INTERNAL_DEFAULT if save_to_internal is None else save_to_internal
                ),
                is_provider=True,
                action=lambda config: self._run(config, props),
            ),
        )

    async def _run(
        self, config: ExportedConfigWithProps, props: Mapping[str, Any]
    ) -> ExportedConfigWithProps:
        with stage_span(self.name, self.platform, self.mod_name) as span:
            try:
                next_mod, mod_request = config["mod_request"].detach_next_mod()
                results: ExportedConfigWithProps = {**config, "mod_request": mod_request}

                file_path = await maybe_await(self.methods.get_file_path(results, props))
                set_span_attributes(span, {"mod.file_path": file_path})

                mod_results = await maybe_await(self.methods.read(file_path, results, props))

                results = await next_mod(
                    {**results, "mod_results": mod_results, "mod_request": mod_request}
                )

                assert_mod_results(results, mod_request.platform, mod_request.mod_name)

                await maybe_await(self.methods.write(file_path, results, props))
                logger.debug("{} wrote {}", self.name, file_path)
                return results
            except Exception as error:
                logger.debug("{} failed: {}: {}", self.name, type(error).__name__, error)
                raise ModStageError(self.platform, self.mod_name, self.name, error) from error

    def __repr__(self) -> str:
        return f"BaseModPlugin({self.name})"


def create_base_mod(
    *,
    method_name: str,
    platform: PlatformName,
    mod_name: str,
    get_file_path: GetFilePath,
    read: ReadMod,
    write: WriteMod,
) -> BaseModPlugin:
    """Wrap a provider triple into a base-mod config plugin."""
    return BaseModPlugin(
        method_name=method_name,
        platform=platform,
        mod_name=mod_name,
        methods=BaseModProviderMethods(get_file_path=get_file_path, read=read, write=write),
    )


def create_platform_base_mod(
    *,
    platform: PlatformName,
    mod_name: str,
    get_file_path: GetFilePath,
    read: ReadMod,
    write: WriteMod,
) -> BaseModPlugin:
    """Like :func:`create_base_mod`, naming the stage ``with<Platform><ModName>BaseMod``."""
    return create_base_mod(
        method_name=base_mod_method_name(platform, mod_name),
        platform=platform,
        mod_name=mod_name,
        get_file_path=get_file_path,
        read=read,
        write=write,
    )


def with_generated_base_mods(
    config: ExportedConfig,
    *,
    platform: PlatformName,
    providers: Mapping[str, Optional[BaseModProviderMethods]],
    **props: Any,
) -> ExportedConfig:
    """Register one base mod per provider, in mapping order.

    ``props`` (``save_to_internal``, ``skip_empty_mod``) are passed to every
    base mod. ``None`` providers are skipped.
    """
    validate_forwarded_base_mod_options(props)

    for mod_name, methods in providers.items():
        if methods is None:
            continue
        base_mod = create_platform_base_mod(
            platform=platform,
            mod_name=mod_name,
            get_file_path=methods.get_file_path,
            read=methods.read,
            write=methods.write,
        )
        config = base_mod(config, props)
    return config
