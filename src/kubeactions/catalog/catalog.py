#!/usr/bin/env python3
"""
KUBEACTIONS SCRIPT CATALOG
--------------------------
The per-kind registry of one discovery script and any number of named
action scripts. Built once at startup through CatalogBuilder and read-only
afterwards, so it can be shared by any number of concurrent readers without
locking.

Lookup is exact on (group, kind). There is no fallback and no inheritance
across kinds: every kind's action set is defined independently.

Author: KubeActions Team
Date: 2026-10-17
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

from kubeactions.core.errors import DuplicateActionError
from kubeactions.core.models import GroupKind, GroupVersionKind, Script

logger = logging.getLogger("kubeactions.catalog")

KindKey = Union[GroupKind, GroupVersionKind]


def _group_kind(key: KindKey) -> GroupKind:
    return key.group_kind if isinstance(key, GroupVersionKind) else key


class ScriptCatalog:
    """Immutable lookup tables; construct through CatalogBuilder."""

    def __init__(self, discovery: Mapping[GroupKind, Script],
                 actions: Mapping[GroupKind, Mapping[str, Script]]):
        self._discovery = MappingProxyType(dict(discovery))
        self._actions = MappingProxyType({
            gk: MappingProxyType(dict(scripts)) for gk, scripts in actions.items()
        })

    def discovery_script(self, key: KindKey) -> Optional[Script]:
        return self._discovery.get(_group_kind(key))

    def action_script(self, key: KindKey, name: str) -> Optional[Script]:
        scripts = self._actions.get(_group_kind(key))
        if scripts is None:
            return None
        return scripts.get(name)

    def action_names(self, key: KindKey) -> List[str]:
        """Names of every defined action, in load order (not availability)."""
        return list(self._actions.get(_group_kind(key), {}))

    def kinds(self) -> List[GroupKind]:
        seen = list(self._discovery)
        seen.extend(gk for gk in self._actions if gk not in self._discovery)
        return seen

    def __len__(self) -> int:
        return len(self._discovery) + sum(len(s) for s in self._actions.values())

    def __repr__(self) -> str:
        return f"ScriptCatalog(kinds={len(self.kinds())}, scripts={len(self)})"


class CatalogBuilder:
    """
    Accumulates scripts from one or more customization sources. A second
    definition for the same (kind, action) or a second discovery script is
    an error; last-write-wins is never allowed.
    """

    def __init__(self):
        self._discovery: Dict[GroupKind, Script] = {}
        self._actions: Dict[GroupKind, Dict[str, Script]] = {}

    def add(self, script: Script) -> "CatalogBuilder":
        gk = script.group_kind
        if script.is_discovery:
            existing = self._discovery.get(gk)
            if existing is not None:
                raise DuplicateActionError(
                    f"Duplicate discovery script: {script.origin} (already defined in {existing.origin})",
                    kind=gk.kind,
                )
            self._discovery[gk] = script
        else:
            scripts = self._actions.setdefault(gk, {})
            existing = scripts.get(script.action)
            if existing is not None:
                raise DuplicateActionError(
                    f"Duplicate action script: {script.origin} (already defined in {existing.origin})",
                    kind=gk.kind, action=script.action,
                )
            scripts[script.action] = script
        logger.debug(f"Registered {script.label} from {script.origin}")
        return self

    def extend(self, scripts: Iterable[Script]) -> "CatalogBuilder":
        for script in scripts:
            self.add(script)
        return self

    def build(self) -> ScriptCatalog:
        catalog = ScriptCatalog(self._discovery, self._actions)
        logger.info(f"Script catalog ready: {len(catalog.kinds())} kinds, {len(catalog)} scripts")
        return catalog
