# plainweb/audit/prune.py
"""
Generic transforms over JSON-like trees (dicts / lists / scalars).

All functions return new structures and never mutate their input.
"""
from typing import Any, Iterable

_EMPTY = object()


def _is_empty(v: Any) -> bool:
    return v is None or v is _EMPTY or (isinstance(v, str) and v == "")


def _prune(o: Any) -> Any:
    if _is_empty(o):
        return _EMPTY
    if isinstance(o, dict):
        out = {}
        for k, v in o.items():
            pv = _prune(v)
            if pv is not _EMPTY:
                out[k] = pv
        return out if out else _EMPTY
    if isinstance(o, (list, tuple)):
        out = [pv for pv in (_prune(v) for v in o) if pv is not _EMPTY]
        return out if out else _EMPTY
    return o


def prune_empty(obj: Any) -> Any:
    """
    Recursively drop None, "", empty lists and empty dicts, including containers
    that only become empty after their children are pruned.

    Returns None when the whole structure prunes away.
    """
    res = _prune(obj)
    return None if res is _EMPTY else res


def strip_key(obj: Any, key: str) -> Any:
    """Remove every entry named ``key`` at any depth, whatever its value."""
    return strip_keys(obj, (key,))


def strip_keys(obj: Any, keys: Iterable[str]) -> Any:
    """Remove every entry whose name is in ``keys`` at any depth."""
    drop = frozenset(keys)

    def _walk(o: Any) -> Any:
        if isinstance(o, dict):
            return {k: _walk(v) for k, v in o.items() if k not in drop}
        if isinstance(o, (list, tuple)):
            return [_walk(v) for v in o]
        return o

    return _walk(obj)
