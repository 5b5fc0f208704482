#!/usr/bin/env python3
"""
KUBEACTIONS DISCOVERY RUNNER
----------------------------
Asks a kind's discovery script which actions the given resource instance
currently offers. Availability depends on live state (a suspended CronJob
offers 'resume', not 'suspend'), so nothing here is cached.

Author: KubeActions Team
Date: 2026-10-17
"""

import logging
from typing import Any, List, Mapping, Optional

from kubeactions.catalog.catalog import ScriptCatalog
from kubeactions.core.errors import ResultShapeError
from kubeactions.core.models import ActionDescriptor, GroupVersionKind, ResourceManifest
from kubeactions.sandbox.sandbox import SandboxFactory

logger = logging.getLogger("kubeactions.discovery")


def descriptor_from_record(record: Any, kind: Optional[str] = None,
                           fallback_name: Optional[str] = None) -> ActionDescriptor:
    """
    Validates one action record. Also used to read the expected descriptors
    of discovery fixtures, so both sides go through the same rules.
    """
    if not isinstance(record, Mapping):
        raise ResultShapeError(f"Action record must be a map, got {type(record).__name__}", kind=kind)

    name = record.get("name", fallback_name)
    if not isinstance(name, str) or not name.strip():
        raise ResultShapeError("Action record has no name", kind=kind)

    display_name = record.get("displayName")
    if display_name is not None and not isinstance(display_name, str):
        raise ResultShapeError(f"displayName of {name!r} must be a string", kind=kind, action=name)

    icon_class = record.get("iconClass")
    if icon_class is not None and not isinstance(icon_class, str):
        raise ResultShapeError(f"iconClass of {name!r} must be a string", kind=kind, action=name)

    # 'disabled' is the historical spelling of 'locked'
    locked = record.get("locked", record.get("disabled", False))
    if locked is None:
        locked = False
    if not isinstance(locked, bool):
        raise ResultShapeError(f"locked flag of {name!r} must be a boolean", kind=kind, action=name)

    return ActionDescriptor(name=name, display_name=display_name, locked=locked, icon_class=icon_class)


class DiscoveryRunner:
    """Runs discovery scripts in fresh sandboxes and validates their output."""

    def __init__(self, catalog: ScriptCatalog, sandbox_factory: SandboxFactory):
        self.catalog = catalog
        self.sandbox_factory = sandbox_factory

    def discover(self, resource: ResourceManifest) -> List[ActionDescriptor]:
        gvk = GroupVersionKind.of(resource)
        script = self.catalog.discovery_script(gvk)
        if script is None:
            logger.debug(f"No discovery script for {gvk.group_kind}")
            return []

        raw = self.sandbox_factory.create().execute(script, resource)
        return self._normalize(raw, gvk.kind)

    def _normalize(self, raw: Any, kind: str) -> List[ActionDescriptor]:
        # A name -> record map is the table form older scripts return
        if isinstance(raw, dict):
            records = [(record, name) for name, record in raw.items()]
        elif isinstance(raw, list):
            records = [(record, None) for record in raw]
        else:
            raise ResultShapeError(
                f"Discovery must return a list of action records, got {type(raw).__name__}",
                kind=kind,
            )

        descriptors: List[ActionDescriptor] = []
        seen = set()
        for record, fallback_name in records:
            descriptor = descriptor_from_record(record, kind=kind, fallback_name=fallback_name)
            if descriptor.name in seen:
                raise ResultShapeError(f"Action {descriptor.name!r} listed twice", kind=kind,
                                       action=descriptor.name)
            seen.add(descriptor.name)
            descriptors.append(descriptor)
        return descriptors
