"""Field path helpers for semi-structured records.

A field path is a dot-separated string addressing a value inside nested
dictionaries: "nino" is a top-level field, "protection.type" is the "type"
field of the "protection" branch. All helpers return new dictionaries and
never mutate their inputs.
"""

from typing import Any

# Sentinel for "no value at this path" (None is a legitimate JSON null)
MISSING: Any = object()


def split_path(path: str) -> list[str]:
    """Split a dot-notation path into its segments.

    Examples:
        >>> split_path("protection.type")
        ['protection', 'type']
        >>> split_path("nino")
        ['nino']
    """
    if not path:
        raise ValueError("Field path cannot be empty")
    return path.split(".")


def get_path(record: dict[str, Any], path: str) -> Any:
    """Get the value at path, or MISSING if any segment is absent.

    Traversal stops with MISSING when a non-dict is met before the last
    segment, so "protection.type" on {"protection": 3} is MISSING.

    Examples:
        >>> get_path({"protection": {"type": 2}}, "protection.type")
        2
        >>> get_path({"protection": {}}, "protection.type") is MISSING
        True
    """
    current: Any = record
    for key in split_path(path):
        if not isinstance(current, dict) or key not in current:
            return MISSING
        current = current[key]
    return current


def has_path(record: dict[str, Any], path: str) -> bool:
    return get_path(record, path) is not MISSING


def set_path(record: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Return a copy of record with value placed at path.

    Intermediate branches are created as needed; a non-dict value sitting on
    an intermediate segment is replaced by a new branch.
    """
    result = dict(record)
    segments = split_path(path)
    current = result
    for key in segments[:-1]:
        child = current.get(key)
        child = dict(child) if isinstance(child, dict) else {}
        current[key] = child
        current = child
    current[segments[-1]] = value
    return result


def delete_path(record: dict[str, Any], path: str) -> dict[str, Any]:
    """Return a copy of record without the value at path.

    Deleting an absent path returns an unchanged copy.
    """
    segments = split_path(path)
    if not has_path(record, path):
        return dict(record)
    result = dict(record)
    current = result
    for key in segments[:-1]:
        child = dict(current[key])
        current[key] = child
        current = child
    del current[segments[-1]]
    return result


def nest_under(path: str, value: Any) -> dict[str, Any]:
    """Build a new record holding value at path.

    Example:
        >>> nest_under("protection.type", 2)
        {'protection': {'type': 2}}
    """
    return set_path({}, path, value)


def deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge overlay into a copy of base.

    Branches present on both sides are merged recursively; for any other
    collision the overlay value wins.
    """
    result = dict(base)
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            result[key] = deep_merge(existing, value)
        else:
            result[key] = value
    return result

