import tomllib

import pytest

from interchaindb.configutil.toml_config import modify_toml, recursive_modify_toml

CONFIG = """moniker = "node"

[rpc]
laddr = "tcp://127.0.0.1:26657"
cors_allowed_origins = []

[p2p]
seeds = ""
"""


def test_overrides_nested_value_and_keeps_others():
    out = tomllib.loads(modify_toml(CONFIG, {"rpc": {"laddr": "tcp://0.0.0.0:26657"}}))
    assert out["rpc"]["laddr"] == "tcp://0.0.0.0:26657"
    assert out["rpc"]["cors_allowed_origins"] == []
    assert out["moniker"] == "node"
    assert out["p2p"] == {"seeds": ""}


def test_creates_missing_section():
    out = tomllib.loads(modify_toml(CONFIG, {"consensus": {"timeout_commit": "1s"}}))
    assert out["consensus"] == {"timeout_commit": "1s"}
    assert out["rpc"]["laddr"] == "tcp://127.0.0.1:26657"


def test_top_level_value_replaced():
    out = tomllib.loads(modify_toml(CONFIG, {"moniker": "other"}))
    assert out["moniker"] == "other"


def test_empty_modifications_round_trip():
    assert tomllib.loads(modify_toml(CONFIG, {})) == tomllib.loads(CONFIG)


def test_recursive_modify_in_place():
    config = {"a": {"b": 1, "c": {"d": 2}}, "e": 3}
    recursive_modify_toml(config, {"a": {"c": {"d": 4, "f": 5}}, "e": 6})
    assert config == {"a": {"b": 1, "c": {"d": 4, "f": 5}}, "e": 6}


def test_table_over_scalar_raises():
    with pytest.raises(TypeError):
        recursive_modify_toml({"a": 1}, {"a": {"b": 2}})


def test_invalid_toml_raises():
    with pytest.raises(tomllib.TOMLDecodeError):
        modify_toml("not = = valid", {})