#!/usr/bin/env python3
"""
KUBEACTIONS STRUCTURAL DIFF
---------------------------
Two-way comparison of an expected manifest against one produced by an
action. Fields the actual object carries but the expected one does not
mention are ignored (the expectation is a partial spec); everything else
must match, with int/float tolerance on numbers because a script may have
routed a count through float arithmetic.

Both sides are deep-copied and normalized before comparison; the caller's
manifests are never touched.

Author: KubeActions Team
Date: 2026-10-17
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubeactions.sandbox.bridge import clone, numbers_equal
from kubeactions.verify.normalizer import Normalizer, noop_normalizer


@dataclass
class DiffResult:
    modified: bool
    expected: Optional[Dict[str, Any]] = None   # normalized expectation
    actual: Optional[Dict[str, Any]] = None     # normalized, pruned actual object
    paths: List[str] = field(default_factory=list)


def remove_map_fields(config: Dict[str, Any], live: Dict[str, Any]) -> Dict[str, Any]:
    """Keeps only the live fields that the config mentions."""
    result = {}
    for key, config_value in config.items():
        if key not in live:
            continue
        live_value = live[key]
        if live_value is not None:
            live_value = _remove_fields(config_value, live_value)
        result[key] = live_value
    return result


def remove_list_fields(config: List[Any], live: List[Any]) -> List[Any]:
    # Extra trailing live elements are kept so that they show up in the diff
    result = []
    for i, live_value in enumerate(live):
        if i < len(config) and live_value is not None:
            live_value = _remove_fields(config[i], live_value)
        result.append(live_value)
    return result


def _remove_fields(config: Any, live: Any) -> Any:
    if isinstance(config, dict) and isinstance(live, dict):
        return remove_map_fields(config, live)
    if isinstance(config, list) and isinstance(live, list):
        return remove_list_fields(config, live)
    return live


def _compare(expected: Any, actual: Any, path: str, out: List[str]) -> None:
    if isinstance(expected, dict) and isinstance(actual, dict):
        for key in list(expected) + [k for k in actual if k not in expected]:
            child = f"{path}.{key}" if path else key
            if key not in expected or key not in actual:
                out.append(child)
            else:
                _compare(expected[key], actual[key], child, out)
        return
    if isinstance(expected, list) and isinstance(actual, list):
        if len(expected) != len(actual):
            out.append(path or "<root>")
            return
        for i, (e, a) in enumerate(zip(expected, actual)):
            _compare(e, a, f"{path}[{i}]", out)
        return
    if numbers_equal(expected, actual):
        return
    if type(expected) is not type(actual) or expected != actual:
        out.append(path or "<root>")


def diff(expected: Dict[str, Any], actual: Dict[str, Any],
         normalizer: Normalizer = noop_normalizer) -> DiffResult:
    """
    Compares `actual` against `expected` after normalizing both.

    Returns:
        DiffResult with modified=True and the differing paths when they differ.
    """
    want = clone(expected)
    got = clone(actual)
    normalizer(want)
    normalizer(got)

    pruned = remove_map_fields(want, got)
    paths: List[str] = []
    _compare(want, pruned, "", paths)
    return DiffResult(modified=bool(paths), expected=want, actual=pruned, paths=paths)
