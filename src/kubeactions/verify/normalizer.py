#!/usr/bin/env python3
"""
KUBEACTIONS KIND NORMALIZER
---------------------------
Rewrites fields an action script cannot reproduce exactly (timestamps,
server-populated metadata, generated names) to fixed values before two
manifests are compared. Policy is a table of kind -> rewrites, so a new kind
is one entry, not new code.

Author: KubeActions Team
Date: 2026-10-17
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from kubeactions.sandbox.bridge import clone

ZERO_TIME = "0001-01-01T00:00:00Z"
GENERATED_NAME_PLACEHOLDER = "generated-name"

Normalizer = Callable[[Dict[str, Any]], None]


class NormalizationError(ValueError):
    """Raised when a rewrite has to pass through a field that is not a map."""

    pass


@dataclass(frozen=True)
class FieldRewrite:
    """Sets `path` to `value` (None nulls the field), creating parent maps."""
    path: Tuple[str, ...]
    value: Any = None

    def apply(self, manifest: Dict[str, Any]) -> None:
        node = manifest
        for depth, key in enumerate(self.path[:-1]):
            child = node.get(key)
            if child is None:
                child = node[key] = {}
            elif not isinstance(child, dict):
                where = ".".join(self.path[:depth + 1])
                raise NormalizationError(f"{where} is {type(child).__name__}, not a map")
            node = child
        node[self.path[-1]] = clone(self.value)


def _rules(kinds: Iterable[str], *rewrites: FieldRewrite) -> Dict[str, List[FieldRewrite]]:
    return {kind: list(rewrites) for kind in kinds}


FLUX_KINDS = (
    "HelmRelease", "ImageRepository", "ImageUpdateAutomation", "Kustomization", "Receiver",
    "Bucket", "GitRepository", "HelmChart", "HelmRepository", "OCIRepository",
)

# Rules are applied in order; a kind may appear in several groups
RULE_GROUPS: List[Dict[str, List[FieldRewrite]]] = [
    _rules(["Job"],
           FieldRewrite(("metadata",), {"name": GENERATED_NAME_PLACEHOLDER})),
    _rules(["DaemonSet", "Deployment", "StatefulSet"],
           FieldRewrite(("spec", "template", "metadata", "annotations"),
                        {"kubectl.kubernetes.io/restartedAt": ZERO_TIME})),
    _rules(["Deployment"],
           FieldRewrite(("status",)),
           FieldRewrite(("metadata", "creationTimestamp")),
           FieldRewrite(("metadata", "generation"))),
    _rules(["Rollout"],
           FieldRewrite(("spec", "restartAt"))),
    _rules(["ExternalSecret", "PushSecret"],
           FieldRewrite(("metadata", "annotations"), {"force-sync": ZERO_TIME})),
    _rules(["Workflow"],
           FieldRewrite(("metadata", "resourceVersion")),
           FieldRewrite(("metadata", "uid")),
           FieldRewrite(("metadata", "annotations", "workflows.argoproj.io/scheduled-time"))),
    _rules(FLUX_KINDS,
           FieldRewrite(("metadata", "annotations"), {"reconcile.fluxcd.io/requestedAt": ZERO_TIME})),
]


class KindNormalizer:
    """Callable normalizer applying the rewrites registered for a manifest's kind."""

    def __init__(self, extra_rules: Optional[Mapping[str, List[FieldRewrite]]] = None):
        self.rules: Dict[str, List[FieldRewrite]] = {}
        groups = list(RULE_GROUPS)
        if extra_rules:
            groups.append(dict(extra_rules))
        for group in groups:
            for kind, rewrites in group.items():
                self.rules.setdefault(kind, []).extend(rewrites)

    def __call__(self, manifest: Optional[Dict[str, Any]]) -> None:
        if manifest is None:
            return
        kind = manifest.get("kind", "")
        for rewrite in self.rules.get(kind, []):
            try:
                rewrite.apply(manifest)
            except NormalizationError as e:
                raise NormalizationError(f"failed to normalize {kind}: {e}") from e


def noop_normalizer(manifest: Optional[Dict[str, Any]]) -> None:
    return None
