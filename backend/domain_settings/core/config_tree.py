"""Config Tree — pure key-path access and master/user merging over nested dicts.

Invariants:
    - Key paths are dot-delimited; each segment indexes one nested dict level
    - merge_configs never mutates its inputs; user wins wherever it holds a value
    - Dicts merge recursively; any non-dict user value replaces the master value wholesale
    - None (JSON null) is treated as absent
"""

import copy
from typing import Any


def split_key_path(key_path: str) -> list[str]:
    """'a.b.c' -> ['a', 'b', 'c']. Empty segments are rejected."""
    segments = key_path.split(".")
    if not key_path or any(not s for s in segments):
        raise ValueError(f"Invalid key path: {key_path!r}")
    return segments


def value_for_key_path(tree: dict, key_path: str) -> Any | None:
    """Return the value at key_path, or None when any segment is missing."""
    node: Any = tree
    for segment in split_key_path(key_path):
        if not isinstance(node, dict) or segment not in node:
            return None
        node = node[segment]
    return node


def container_for_key_path(tree: dict, key_path: str) -> tuple[dict, str]:
    """Return (parent dict, last segment), creating intermediate dicts.

    Intermediate values that are not dicts are replaced by empty dicts.
    """
    segments = split_key_path(key_path)
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = {}
            node[segment] = child
        node = child
    return node, segments[-1]


def set_value_for_key_path(tree: dict, key_path: str, value: Any) -> None:
    parent, key = container_for_key_path(tree, key_path)
    parent[key] = value


def remove_key_path(tree: dict, key_path: str) -> bool:
    """Remove the value at key_path. Returns True if something was removed."""
    segments = split_key_path(key_path)
    parent = value_for_key_path(tree, ".".join(segments[:-1])) if len(segments) > 1 else tree
    if not isinstance(parent, dict) or segments[-1] not in parent:
        return False
    del parent[segments[-1]]
    return True


def merge_configs(master: dict, user: dict) -> dict:
    """User layered over master; returns a fresh deep copy."""
    merged = copy.deepcopy(master)
    for key, user_value in user.items():
        if user_value is None:
            continue
        master_value = merged.get(key)
        if isinstance(master_value, dict) and isinstance(user_value, dict):
            merged[key] = merge_configs(master_value, user_value)
        else:
            merged[key] = copy.deepcopy(user_value)
    return merged
