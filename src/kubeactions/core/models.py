#!/usr/bin/env python3
"""
KUBEACTIONS CORE MODELS
-----------------------
Defines the fundamental data structures used across the KubeActions engine.
Resource manifests themselves stay plain dictionaries (the JSON tree as it
comes off the API server); these models describe identities, actions and
the impacted resources an action produces.

Author: KubeActions Team
Date: 2026-10-17
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from kubeactions.core.errors import UnsupportedOperationError

# A resource manifest is an ordered str -> Value mapping.
ResourceManifest = Dict[str, Any]


@dataclass(frozen=True)
class GroupKind:
    """Catalog key: scripts are bound to a group/kind, independent of version."""
    group: str
    kind: str

    def __str__(self) -> str:
        return f"{self.group}/{self.kind}" if self.group else self.kind


@dataclass(frozen=True)
class GroupVersionKind:
    group: str
    version: str
    kind: str

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> "GroupVersionKind":
        """Splits 'apps/v1' into group/version; 'v1' belongs to the core group."""
        group, _, version = (api_version or "").rpartition("/")
        return cls(group=group, version=version, kind=kind or "")

    @classmethod
    def of(cls, manifest: Mapping[str, Any]) -> "GroupVersionKind":
        return cls.from_api_version(manifest.get("apiVersion", ""), manifest.get("kind", ""))

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def group_kind(self) -> GroupKind:
        return GroupKind(self.group, self.kind)

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


@dataclass(frozen=True)
class ResourceIdentity:
    """(group, version, kind, namespace, name): what a patch must preserve."""
    gvk: GroupVersionKind
    namespace: str
    name: str

    @classmethod
    def of(cls, manifest: Mapping[str, Any]) -> "ResourceIdentity":
        metadata = manifest.get("metadata") or {}
        return cls(
            gvk=GroupVersionKind.of(manifest),
            # A missing namespace is the empty namespace
            namespace=metadata.get("namespace") or "",
            name=metadata.get("name") or "",
        )

    def __str__(self) -> str:
        path = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.gvk.kind} {path} ({self.gvk.api_version})"


@dataclass(frozen=True)
class ActionDescriptor:
    """
    One action currently offered by a resource instance.

    Computed fresh on every discovery call; availability depends on the live
    state of the resource, so descriptors are never cached.
    """
    name: str
    display_name: Optional[str] = None
    locked: bool = False
    icon_class: Optional[str] = None


@dataclass(frozen=True)
class ActionParameter:
    name: str
    value: str


# Parameters may be passed as a list of ActionParameter or as a plain mapping
ActionParams = Union[List[ActionParameter], Mapping[str, str], None]


class K8sOperation(str, Enum):
    """Cluster operation required to realize an impacted resource."""
    PATCH = "patch"
    CREATE = "create"

    @classmethod
    def parse(cls, raw: Any, kind: Optional[str] = None, action: Optional[str] = None) -> "K8sOperation":
        """Case-insensitive lookup; anything but patch/create is rejected."""
        if isinstance(raw, str):
            for op in cls:
                if op.value == raw.lower():
                    return op
        raise UnsupportedOperationError(
            f"Unsupported operation {raw!r}; expected one of "
            f"{', '.join(op.value for op in cls)}",
            kind=kind, action=action,
        )


@dataclass
class ImpactedResource:
    """
    A resource an action wants applied, tagged with how to apply it.

    Patch records always carry the source identity; create records may leave
    the name to the cluster, in which case generated_name is set.
    """
    operation: K8sOperation
    resource: ResourceManifest
    generated_name: bool = False

    @property
    def identity(self) -> ResourceIdentity:
        return ResourceIdentity.of(self.resource)


@dataclass(frozen=True)
class Script:
    """
    Operator-authored script source bound to a kind (discovery) or to a
    kind and action name. Stateless: nothing persists between invocations.
    """
    group_kind: GroupKind
    source: str
    action: Optional[str] = None     # None marks the discovery script
    origin: str = "<memory>"         # File path or config key, used in tracebacks

    @property
    def is_discovery(self) -> bool:
        return self.action is None

    @property
    def entrypoint(self) -> str:
        return "discover" if self.is_discovery else "run"

    @property
    def label(self) -> str:
        return f"{self.group_kind}:{self.action or 'discovery'}"


def normalize_params(params: ActionParams) -> Dict[str, str]:
    """Flattens caller parameters into the name -> value table scripts receive."""
    if not params:
        return {}
    if isinstance(params, Mapping):
        return {str(k): str(v) for k, v in params.items()}
    return {p.name: p.value for p in params}
