"""
Tests for the Mod Chain Engine
==============================
"""

from __future__ import annotations

import pytest

from config_plugins.plugin_types import BaseModOptions, ModRequest, PluginError
from config_plugins.plugins.with_mod import (
    InterceptingMod,
    get_mod,
    maybe_await,
    noop_mod,
    save_to_internal_object,
    with_base_mod,
    with_mod,
)


def _request(platform="ios", mod_name="plist", **kwargs):
    return ModRequest(platform=platform, mod_name=mod_name, **kwargs)


async def _echo_action(config):
    next_mod, request = config["mod_request"].detach_next_mod()
    return await next_mod({**config, "mod_request": request})


@pytest.mark.unit
def test_with_base_mod_skips_empty_chain():
    config = with_base_mod(
        {"name": "app"},
        BaseModOptions(platform="ios", mod="plist", action=_echo_action, skip_empty_mod=True),
    )
    assert config == {"name": "app", "mods": {"ios": {}}}


@pytest.mark.unit
def test_with_base_mod_installs_noop_for_empty_chain():
    config = with_base_mod(
        {}, BaseModOptions(platform="ios", mod="plist", action=_echo_action, skip_empty_mod=False)
    )
    mod = config["mods"]["ios"]["plist"]
    assert isinstance(mod, InterceptingMod)
    assert mod.next_mod is noop_mod


@pytest.mark.unit
def test_with_base_mod_wraps_existing_chain_without_mutating_input():
    async def existing(config):
        return config

    original = {"mods": {"ios": {"plist": existing}}}
    config = with_base_mod(
        original, BaseModOptions(platform="ios", mod="plist", action=_echo_action, is_provider=True)
    )

    assert original["mods"]["ios"]["plist"] is existing
    wrapped = config["mods"]["ios"]["plist"]
    assert wrapped.next_mod is existing
    assert wrapped.is_provider is True
    assert wrapped.is_introspective is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_intercepting_mod_supplies_next_mod_to_action():
    seen = {}

    async def action(config):
        seen["next_mod"] = config["mod_request"].next_mod
        return config

    async def existing(config):
        return config

    config = with_base_mod(
        {"mods": {"ios": {"plist": existing}}},
        BaseModOptions(platform="ios", mod="plist", action=action),
    )
    await config["mods"]["ios"]["plist"]({**config, "mod_request": _request()})

    assert seen["next_mod"] is existing


@pytest.mark.unit
@pytest.mark.asyncio
async def test_intercepting_mod_requires_mod_request():
    config = with_base_mod(
        {}, BaseModOptions(platform="ios", mod="plist", action=_echo_action, skip_empty_mod=False)
    )
    with pytest.raises(PluginError) as exc_info:
        await config["mods"]["ios"]["plist"]({"mods": {}})
    assert exc_info.value.code == "MISSING_MOD_REQUEST"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_save_to_internal_caches_mod_results():
    async def action(config):
        return {**config, "mod_results": {"saved": True}}

    config = with_base_mod(
        {},
        BaseModOptions(
            platform="android", mod="manifest", action=action, skip_empty_mod=False, save_to_internal=True
        ),
    )
    results = await config["mods"]["android"]["manifest"](
        {**config, "mod_request": _request("android", "manifest")}
    )

    assert results["_internal"]["mod_results"]["android"]["manifest"] == {"saved": True}


@pytest.mark.unit
def test_save_to_internal_object_preserves_other_entries():
    config = {"_internal": {"project_root": "/p", "mod_results": {"ios": {"a": 1}}}}
    updated = save_to_internal_object(config, "ios", "b", 2)

    assert updated["_internal"]["mod_results"]["ios"] == {"a": 1, "b": 2}
    assert updated["_internal"]["project_root"] == "/p"
    assert config["_internal"]["mod_results"]["ios"] == {"a": 1}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_with_mod_transforms_and_forwards():
    def action(config):
        return {**config, "mod_results": {**config["mod_results"], "edited": True}}

    config = with_mod({}, platform="ios", mod="plist", action=action)
    mod = get_mod(config, "ios", "plist")
    assert mod.is_provider is False

    results = await mod({**config, "mod_results": {"x": 1}, "mod_request": _request()})
    assert results["mod_results"] == {"x": 1, "edited": True}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_with_mod_action_sees_request_without_next_mod():
    seen = {}

    async def action(config):
        seen["request"] = config["mod_request"]
        return config

    config = with_mod({}, platform="ios", mod="plist", action=action)
    await get_mod(config, "ios", "plist")({**config, "mod_results": {}, "mod_request": _request()})

    assert seen["request"].next_mod is None
    assert seen["request"].mod_name == "plist"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_later_registered_mod_runs_first():
    order = []

    def make(name):
        def action(config):
            order.append(name)
            return config

        return action

    config = with_mod({}, platform="ios", mod="plist", action=make("first"))
    config = with_mod(config, platform="ios", mod="plist", action=make("second"))

    await get_mod(config, "ios", "plist")({**config, "mod_results": {}, "mod_request": _request()})

    assert order == ["second", "first"]


@pytest.mark.unit
def test_detach_next_mod_without_continuation_raises():
    with pytest.raises(PluginError) as exc_info:
        _request().detach_next_mod()
    assert exc_info.value.code == "MISSING_NEXT_MOD"


@pytest.mark.unit
def test_detach_next_mod_returns_stripped_copy():
    request = _request(next_mod=noop_mod)
    next_mod, stripped = request.detach_next_mod()

    assert next_mod is noop_mod
    assert stripped.next_mod is None
    assert request.next_mod is noop_mod
    assert stripped.platform == "ios"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_maybe_await_accepts_values_and_coroutines():
    async def coro():
        return 2

    assert await maybe_await(1) == 1
    assert await maybe_await(coro()) == 2


@pytest.mark.unit
def test_get_mod_missing_returns_none():
    assert get_mod({}, "ios", "plist") is None
    assert get_mod({"mods": {"ios": {}}}, "ios", "plist") is None
