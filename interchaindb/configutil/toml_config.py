"""Applying nested overrides to TOML configuration."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping, MutableMapping
from typing import Any

import tomli_w


def recursive_modify_toml(
    config: MutableMapping[str, Any], modifications: Mapping[str, Any]
) -> None:
    """Apply ``modifications`` to ``config`` in place, merging nested tables.

    A table in ``modifications`` is merged into the table of the same key,
    which is created when missing. Any other value replaces the old one.
    Raises TypeError when a table would be merged into a non-table value.
    """
    for key, value in modifications.items():
        if isinstance(value, Mapping):
            section = config.get(key)
            if section is None:
                section = {}
            if not isinstance(section, MutableMapping):
                raise TypeError(
                    f"failed to convert section to a table, found ({type(section).__name__})"
                )
            recursive_modify_toml(section, value)
            config[key] = section
        else:
            config[key] = value


def modify_toml(text: str, modifications: Mapping[str, Any]) -> str:
    """Parse TOML ``text``, apply ``modifications`` and return the new document."""
    try:
        config = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        exc.add_note("failed to unmarshal toml config")
        raise
    recursive_modify_toml(config, modifications)
    return tomli_w.dumps(config)