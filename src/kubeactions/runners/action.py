#!/usr/bin/env python3
"""
KUBEACTIONS ACTION RUNNER
-------------------------
Executes a named action script and turns its untrusted output into
ImpactedResource records.

Two output shapes are accepted and classified at the boundary:

  LegacyManifest       a single bare manifest; the operation is inferred
                       (same identity as the source -> patch, else create)
  OperationRecordList  a list of {operation: patch|create, resource: manifest}

The runner is fail-closed: one bad record rejects the whole result. It only
computes intended mutations and never applies them, so partial application
has no meaning here.

Author: KubeActions Team
Date: 2026-10-17
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Tuple, Union

from kubeactions.catalog.catalog import ScriptCatalog
from kubeactions.core.errors import (
    ActionNotFoundError,
    IdentityMismatchError,
    ResultShapeError,
)
from kubeactions.core.models import (
    ActionParams,
    GroupVersionKind,
    ImpactedResource,
    K8sOperation,
    ResourceIdentity,
    ResourceManifest,
    normalize_params,
)
from kubeactions.sandbox.sandbox import SandboxFactory

logger = logging.getLogger("kubeactions.actions")

# Record keys; the second spelling is the one older fixtures use
OPERATION_KEYS = ("operation", "k8sOperation")
RESOURCE_KEYS = ("resource", "unstructuredObj")


@dataclass
class LegacyManifest:
    manifest: ResourceManifest


@dataclass
class OperationRecordList:
    records: List[Tuple[K8sOperation, ResourceManifest]]


ActionResult = Union[LegacyManifest, OperationRecordList]


def _first_key(record: dict, keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _require_manifest(value: Any, where: str, kind: str, action: str) -> ResourceManifest:
    if not isinstance(value, dict):
        raise ResultShapeError(f"{where}: expected a resource manifest, got {type(value).__name__}",
                               kind=kind, action=action)
    for field in ("apiVersion", "kind"):
        if not isinstance(value.get(field), str) or not value.get(field):
            raise ResultShapeError(f"{where}: manifest has no {field}", kind=kind, action=action)
    if not isinstance(value.get("metadata"), dict):
        raise ResultShapeError(f"{where}: manifest has no metadata map", kind=kind, action=action)
    return value


def classify_result(raw: Any, kind: str, action: str) -> ActionResult:
    """Validates raw script output into one of the two tagged result shapes."""
    if isinstance(raw, dict):
        return LegacyManifest(_require_manifest(raw, "result", kind, action))

    if isinstance(raw, list):
        records = []
        for i, record in enumerate(raw):
            where = f"result[{i}]"
            if not isinstance(record, dict):
                raise ResultShapeError(f"{where}: expected an operation record, got {type(record).__name__}",
                                       kind=kind, action=action)
            operation = K8sOperation.parse(_first_key(record, OPERATION_KEYS), kind=kind, action=action)
            resource = _require_manifest(_first_key(record, RESOURCE_KEYS), f"{where}.resource", kind, action)
            records.append((operation, resource))
        return OperationRecordList(records)

    raise ResultShapeError(
        f"Action must return a manifest or a list of operation records, got {type(raw).__name__}",
        kind=kind, action=action,
    )


class ActionRunner:
    """Runs action scripts in fresh sandboxes and validates their output."""

    def __init__(self, catalog: ScriptCatalog, sandbox_factory: SandboxFactory):
        self.catalog = catalog
        self.sandbox_factory = sandbox_factory

    def run_action(self, resource: ResourceManifest, action_name: str,
                   params: ActionParams = None) -> List[ImpactedResource]:
        gvk = GroupVersionKind.of(resource)
        script = self.catalog.action_script(gvk, action_name)
        if script is None:
            raise ActionNotFoundError(f"No action {action_name!r} defined for {gvk.group_kind}",
                                      kind=gvk.kind, action=action_name)

        raw = self.sandbox_factory.create().execute(script, resource, normalize_params(params))
        result = classify_result(raw, gvk.kind, action_name)
        return self._impacted(result, ResourceIdentity.of(resource), action_name)

    def _impacted(self, result: ActionResult, source: ResourceIdentity,
                  action: str) -> List[ImpactedResource]:
        kind = source.gvk.kind
        if isinstance(result, LegacyManifest):
            identity = ResourceIdentity.of(result.manifest)
            operation = K8sOperation.PATCH if identity == source else K8sOperation.CREATE
            logger.debug(f"{kind}:{action} legacy result inferred as {operation.value}")
            records = [(operation, result.manifest)]
        else:
            records = result.records

        impacted = []
        for operation, manifest in records:
            impacted.append(self._validate(operation, manifest, source, action))
        return impacted

    def _validate(self, operation: K8sOperation, manifest: ResourceManifest,
                  source: ResourceIdentity, action: str) -> ImpactedResource:
        kind = source.gvk.kind
        identity = ResourceIdentity.of(manifest)

        if operation is K8sOperation.PATCH:
            # Patching is only ever allowed on the source resource itself
            if identity != source:
                raise IdentityMismatchError(
                    f"Patch targets {identity} but the source is {source}",
                    kind=kind, action=action,
                )
            return ImpactedResource(operation=operation, resource=manifest)

        if not identity.namespace:
            raise ResultShapeError(f"Created {identity.gvk.kind} has no metadata.namespace",
                                   kind=kind, action=action)
        return ImpactedResource(operation=operation, resource=manifest,
                                generated_name=not identity.name)
