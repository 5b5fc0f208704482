#!/usr/bin/env python3
"""
KUBEACTIONS ENGINE - The Resource Action Orchestrator
-----------------------------------------------------
ResourceActionEngine is the single entry point callers use. It owns the
read-only ScriptCatalog, a SandboxFactory for the configured trust tier, and
the two runners. Every call gets its own sandbox, so one engine may serve
any number of concurrent callers.

The engine never talks to a cluster, never applies what it computes and never
retries: every failure surfaces exactly once to the caller.

Author: KubeActions Team
Date: 2026-10-17
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

from kubeactions.catalog.catalog import ScriptCatalog
from kubeactions.catalog.loader import load_catalog
from kubeactions.core.errors import (
    ActionEngineError,
    IdentityMismatchError,
    ResultShapeError,
    UnsupportedOperationError,
)
from kubeactions.core.models import (
    ActionDescriptor,
    ActionParams,
    GroupVersionKind,
    ImpactedResource,
    ResourceManifest,
)
from kubeactions.runners.action import ActionRunner
from kubeactions.runners.discovery import DiscoveryRunner
from kubeactions.sandbox.context import TrustLevel
from kubeactions.sandbox.sandbox import SandboxFactory

logger = logging.getLogger("kubeactions.engine")

# Script ran fine but its output was refused
REJECTED_RESULT_ERRORS = (ResultShapeError, IdentityMismatchError, UnsupportedOperationError)


def _log_failure(what: str, error: ActionEngineError) -> None:
    level = logging.WARNING if isinstance(error, REJECTED_RESULT_ERRORS) else logging.ERROR
    logger.log(level, f"{what}: {type(error).__name__}: {error}")


class ResourceActionEngine:
    """
    Discovers and executes custom resource actions against manifest snapshots.
    """

    def __init__(self, catalog: ScriptCatalog, trust: TrustLevel = TrustLevel.RESTRICTED,
                 sandbox_factory: Optional[SandboxFactory] = None):
        """
        Args:
            catalog: The immutable script catalog, built once at startup.
            trust: Sandbox tier; FULL is meant for local debugging only.
            sandbox_factory: Override for the per-call sandbox factory.
        """
        self.catalog = catalog
        self.sandbox_factory = sandbox_factory or SandboxFactory(trust)
        self.discovery = DiscoveryRunner(catalog, self.sandbox_factory)
        self.actions = ActionRunner(catalog, self.sandbox_factory)

    @classmethod
    def from_paths(cls, roots: Iterable[Union[str, Path]] = (),
                   documents: Iterable[Union[str, Path]] = (),
                   trust: TrustLevel = TrustLevel.RESTRICTED) -> "ResourceActionEngine":
        """Loads the catalog from customization roots/documents and wraps it."""
        return cls(load_catalog(roots, documents), trust=trust)

    @property
    def trust(self) -> TrustLevel:
        return self.sandbox_factory.trust

    def discover(self, resource: ResourceManifest) -> List[ActionDescriptor]:
        """Lists the actions the resource offers in its current state."""
        gvk = GroupVersionKind.of(resource)
        try:
            descriptors = self.discovery.discover(resource)
        except ActionEngineError as e:
            _log_failure(f"Discovery failed for {gvk.group_kind}", e)
            raise
        logger.debug(f"Discovered {len(descriptors)} actions for {gvk.group_kind}")
        return descriptors

    def run_action(self, resource: ResourceManifest, action_name: str,
                   params: ActionParams = None) -> List[ImpactedResource]:
        """Computes the impacted resources of an action; applies nothing."""
        gvk = GroupVersionKind.of(resource)
        try:
            impacted = self.actions.run_action(resource, action_name, params)
        except ActionEngineError as e:
            _log_failure(f"Action {action_name!r} failed for {gvk.group_kind}", e)
            raise
        logger.info(
            f"Action {action_name!r} on {gvk.kind} produced "
            f"{', '.join(r.operation.value for r in impacted) or 'no changes'}"
        )
        return impacted
