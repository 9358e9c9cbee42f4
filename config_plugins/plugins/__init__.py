"""Mod registration: base mods, the chain engine and the mod compiler."""
