"""Config Tree — verifies key-path access and master/user merging."""

import pytest

from domain_settings.core.config_tree import (
    merge_configs,
    remove_key_path,
    set_value_for_key_path,
    split_key_path,
    value_for_key_path,
)


def test_value_for_key_path_reads_nested_values():
    tree = {"security": {"http_username": "admin"}}
    assert value_for_key_path(tree, "security.http_username") == "admin"


def test_value_for_key_path_missing_is_none():
    tree = {"security": "flat"}
    assert value_for_key_path(tree, "security.http_username") is None
    assert value_for_key_path(tree, "metaverse.id") is None


@pytest.mark.parametrize("key_path", ["", "a..b", ".a", "a."])
def test_split_key_path_rejects_empty_segments(key_path):
    with pytest.raises(ValueError):
        split_key_path(key_path)


def test_set_creates_and_replaces_intermediate_maps():
    tree = {"a": 5}
    set_value_for_key_path(tree, "a.b.c", 1)
    assert tree == {"a": {"b": {"c": 1}}}


def test_remove_key_path_reports_whether_anything_was_removed():
    tree = {"a": {"b": 1}}
    assert remove_key_path(tree, "a.b") is True
    assert tree == {"a": {}}
    assert remove_key_path(tree, "a.b") is False
    assert remove_key_path(tree, "x.y") is False


def test_merge_user_wins_and_null_is_absent():
    master = {"a": {"x": 1, "y": 2}, "b": 1}
    user = {"a": {"y": 3}, "b": None, "c": [1]}

    merged = merge_configs(master, user)

    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": [1]}


def test_merge_non_map_user_value_replaces_master_map():
    assert merge_configs({"a": {"x": 1}}, {"a": "flat"}) == {"a": "flat"}


def test_merge_does_not_alias_inputs():
    master = {"a": {"x": 1}}
    user = {"c": [1]}

    merged = merge_configs(master, user)
    merged["a"]["x"] = 2
    merged["c"].append(2)

    assert master == {"a": {"x": 1}}
    assert user == {"c": [1]}
