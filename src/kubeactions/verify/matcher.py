#!/usr/bin/env python3
"""
KUBEACTIONS IDENTITY MATCHER
----------------------------
Pairs a resource produced by an action with the expected resource it
corresponds to. Some source/result kind pairs can never produce a
predictable name: a Job created from a CronJob gets a suffix the script
cannot know in advance. Those pairs are listed in GENERATED_NAME_PAIRS and
match on the source-name prefix instead of the exact name.

Author: KubeActions Team
Date: 2026-10-17
"""

from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from kubeactions.core.models import ResourceIdentity


class MatchStrategy(str, Enum):
    EXACT_NAME = "exact-name"
    SOURCE_NAME_PREFIX = "source-name-prefix"


# (source kind, result kind) -> strategy; anything absent matches by exact name
GENERATED_NAME_PAIRS: Dict[Tuple[str, str], MatchStrategy] = {
    ("CronJob", "Job"): MatchStrategy.SOURCE_NAME_PREFIX,
    ("CronWorkflow", "Workflow"): MatchStrategy.SOURCE_NAME_PREFIX,
    ("WorkflowTemplate", "Workflow"): MatchStrategy.SOURCE_NAME_PREFIX,
}


def match_strategy(source_kind: str, result_kind: str) -> MatchStrategy:
    return GENERATED_NAME_PAIRS.get((source_kind, result_kind), MatchStrategy.EXACT_NAME)


def matches(expected: Mapping[str, Any], actual: Mapping[str, Any], source: Mapping[str, Any]) -> bool:
    """
    True when `expected` is the fixture counterpart of `actual`: same GVK,
    same namespace, and a name that satisfies the pair's strategy.
    """
    want = ResourceIdentity.of(expected)
    got = ResourceIdentity.of(actual)
    src = ResourceIdentity.of(source)

    if want.gvk != got.gvk or want.namespace != got.namespace:
        return False

    if match_strategy(src.gvk.kind, got.gvk.kind) is MatchStrategy.SOURCE_NAME_PREFIX:
        return want.name.startswith(src.name)
    return want.name == got.name


def find_expected(candidates: Iterable[Mapping[str, Any]], actual: Mapping[str, Any],
                  source: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    """Returns the first candidate matching `actual`, or None."""
    for candidate in candidates:
        if matches(candidate, actual, source):
            return candidate
    return None
