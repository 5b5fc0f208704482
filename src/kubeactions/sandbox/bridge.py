#!/usr/bin/env python3
"""
KUBEACTIONS VALUE BRIDGE
------------------------
The single place where the host resource tree and the sandbox value model
meet. No other component re-decides these conventions:

  * mappings become plain dicts keyed by str, sequences become lists
    indexed from 0, None stays None, bool is never treated as a number;
  * ints cross unchanged (Python holds 64-bit integers exactly);
  * host dates and datetimes go in as RFC 3339 strings, as on the wire;
  * on the way out, an integral float within the safe-integer range is folded
    back to int. This is the documented lossy path: a script doing float
    arithmetic on a replica count only round-trips exactly below 2**53;
  * everything is deep-copied, so no object is shared across the boundary.

Anything the resource tree cannot hold (sets, callables, bytes, NaN, custom
objects, self-referencing or absurdly deep containers) is a ResultShapeError
on the way out.

Author: KubeActions Team
Date: 2026-10-17
"""

import math
from datetime import date, datetime, timezone
from typing import Any, FrozenSet, Mapping, Optional

from kubeactions.core.errors import ResultShapeError

MAX_SAFE_INTEGER = 2 ** 53
# Far deeper than any real manifest, well under the interpreter recursion limit
MAX_DEPTH = 200


def _timestamp(value: date) -> str:
    if not isinstance(value, datetime):
        return value.isoformat()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def to_sandbox(value: Any) -> Any:
    """Deep-copies a host value into the sandbox value model."""
    if value is None or isinstance(value, bool):
        return value
    # Plain builtins only: YAML loaders hand out str/int/float subclasses
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    # Kubernetes timestamps are RFC 3339 strings on the wire
    if isinstance(value, date):
        return _timestamp(value)
    if isinstance(value, Mapping):
        return {str(k): to_sandbox(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_sandbox(item) for item in value]
    # Host trees come from a YAML/JSON decoder; anything else is a caller bug
    raise TypeError(f"Cannot bridge host value of type {type(value).__name__}")


def from_sandbox(value: Any, kind: Optional[str] = None, action: Optional[str] = None,
                 path: str = "result") -> Any:
    """Validates and deep-copies a script result back into the host tree."""
    return _from_sandbox(value, kind, action, path, frozenset())


def _from_sandbox(value: Any, kind: Optional[str], action: Optional[str], path: str,
                  ancestors: FrozenSet[int]) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ResultShapeError(f"{path}: non-finite number {value!r}", kind=kind, action=action)
        if value.is_integer() and abs(value) <= MAX_SAFE_INTEGER:
            return int(value)
        return value
    if isinstance(value, (dict, list, tuple)):
        # Only containers on the current path count; a subtree reused under two keys is no cycle
        if id(value) in ancestors:
            raise ResultShapeError(f"{path}: container refers to itself", kind=kind, action=action)
        if len(ancestors) >= MAX_DEPTH:
            raise ResultShapeError(f"{path}: nested deeper than {MAX_DEPTH} levels",
                                   kind=kind, action=action)
        ancestors = ancestors | {id(value)}
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ResultShapeError(
                    f"{path}: map keys must be strings, got {type(key).__name__}",
                    kind=kind, action=action,
                )
            out[key] = _from_sandbox(item, kind, action, f"{path}.{key}", ancestors)
        return out
    if isinstance(value, (list, tuple)):
        return [_from_sandbox(item, kind, action, f"{path}[{i}]", ancestors)
                for i, item in enumerate(value)]
    raise ResultShapeError(
        f"{path}: unsupported value of type {type(value).__name__}",
        kind=kind, action=action,
    )


def clone(value: Any) -> Any:
    """Pure deep copy of a data tree, exposed to scripts as deepcopy()."""
    if isinstance(value, dict):
        return {k: clone(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [clone(item) for item in value]
    return value


def numbers_equal(a: Any, b: Any) -> bool:
    """Int/float tolerant equality for numeric leaves (bools excluded)."""
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return a == b
    return False
