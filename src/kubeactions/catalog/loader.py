#!/usr/bin/env python3
"""
KUBEACTIONS CUSTOMIZATION LOADER
--------------------------------
Turns customization sources into Script records for the CatalogBuilder.

Two sources are supported:

1. A directory tree (one or more roots):

       <root>/<group>/<Kind>/actions/discovery.py
       <root>/<group>/<Kind>/actions/<action>/action.py
       <root>/<group>/<Kind>/actions/action_test.yaml     (fixtures, optional)
       <root>/<group>/<Kind>/actions/testdata/            (fixtures, optional)

   The core API group is spelled 'core'.

2. A YAML document keyed by '<group>/<Kind>':

       apps/Deployment:
         discovery: |
           def discover(obj): ...
         definitions:
           - name: restart
             action: |
               def run(obj, params): ...

Author: KubeActions Team
Date: 2026-10-17
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from kubeactions.catalog.catalog import CatalogBuilder, ScriptCatalog
from kubeactions.core.errors import LoadError
from kubeactions.core.models import GroupKind, Script

logger = logging.getLogger("kubeactions.loader")

ENV_CUSTOMIZATIONS = "KUBEACTIONS_CUSTOMIZATIONS"
DEFAULT_CUSTOMIZATIONS_DIR = "resource_customizations"
CORE_GROUP_DIR = "core"
ACTIONS_DIR = "actions"
DISCOVERY_FILE = "discovery.py"
ACTION_FILE = "action.py"
# Directories under actions/ that hold fixtures rather than scripts
RESERVED_DIRS = {"testdata"}


def resolve_customization_paths(explicit: Optional[Sequence[str]] = None) -> List[Path]:
    """Get customization roots in priority order.

    Order:
    1. Paths given explicitly (CLI --customizations)
    2. $KUBEACTIONS_CUSTOMIZATIONS (os.pathsep separated)
    3. ./resource_customizations

    Returns:
        The first non-empty source, as a list of paths.
    """
    if explicit:
        return [Path(p).expanduser() for p in explicit]

    env_value = os.environ.get(ENV_CUSTOMIZATIONS)
    if env_value:
        return [Path(p).expanduser() for p in env_value.split(os.pathsep) if p]

    return [Path(DEFAULT_CUSTOMIZATIONS_DIR)]


def _read_script(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Unable to read script {path}: {e}") from e


def iter_directory_scripts(root: Path) -> Iterator[Script]:
    """Walks one customization root and yields every script found."""
    root = Path(root)
    if not root.is_dir():
        raise LoadError(f"Customization root not found: {root}")

    for actions_dir in sorted(root.glob(f"*/*/{ACTIONS_DIR}")):
        if not actions_dir.is_dir() or actions_dir.is_symlink():
            continue
        kind_dir = actions_dir.parent
        group = kind_dir.parent.name
        gk = GroupKind(group="" if group == CORE_GROUP_DIR else group, kind=kind_dir.name)

        discovery = actions_dir / DISCOVERY_FILE
        if discovery.is_file():
            yield Script(group_kind=gk, source=_read_script(discovery), origin=str(discovery))

        for action_dir in sorted(p for p in actions_dir.iterdir() if p.is_dir()):
            if action_dir.name in RESERVED_DIRS:
                continue
            action_file = action_dir / ACTION_FILE
            if not action_file.is_file():
                raise LoadError(f"Action directory {action_dir} has no {ACTION_FILE}",
                                kind=gk.kind, action=action_dir.name)
            yield Script(group_kind=gk, source=_read_script(action_file),
                         action=action_dir.name, origin=str(action_file))


def _parse_group_kind(key: str) -> GroupKind:
    group, _, kind = key.strip().rpartition("/")
    if not kind:
        raise LoadError(f"Invalid customization key {key!r}; expected '<group>/<Kind>'")
    return GroupKind(group=group, kind=kind)


def iter_document_scripts(document: dict, origin: str = "<document>") -> Iterator[Script]:
    """Yields scripts from an already-parsed customization document."""
    if not isinstance(document, dict):
        raise LoadError(f"{origin}: customization document must be a map of '<group>/<Kind>' entries")

    for key, entry in document.items():
        gk = _parse_group_kind(str(key))
        if not isinstance(entry, dict):
            raise LoadError(f"{origin}: entry {key!r} must be a map", kind=gk.kind)

        discovery = entry.get("discovery")
        if discovery is not None:
            if not isinstance(discovery, str):
                raise LoadError(f"{origin}: {key}.discovery must be a string", kind=gk.kind)
            yield Script(group_kind=gk, source=discovery, origin=f"{origin}#{key}/discovery")

        definitions = entry.get("definitions") or []
        if not isinstance(definitions, list):
            raise LoadError(f"{origin}: {key}.definitions must be a list", kind=gk.kind)
        for i, definition in enumerate(definitions):
            name = definition.get("name") if isinstance(definition, dict) else None
            source = definition.get("action") if isinstance(definition, dict) else None
            if not isinstance(name, str) or not name:
                raise LoadError(f"{origin}: {key}.definitions[{i}] has no name", kind=gk.kind)
            if not isinstance(source, str):
                raise LoadError(f"{origin}: {key}.definitions[{i}] has no action script",
                                kind=gk.kind, action=name)
            yield Script(group_kind=gk, source=source, action=name,
                         origin=f"{origin}#{key}/{name}")


def parse_document(text: str, origin: str = "<string>") -> dict:
    """Parses YAML customization text."""
    try:
        return YAML(typ="safe").load(text) or {}
    except YAMLError as e:
        raise LoadError(f"Unable to parse customization document {origin}: {e}") from e


def load_document(path: Union[str, Path]) -> dict:
    """Reads and parses a YAML customization document from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Unable to read customization document {path}: {e}") from e
    return parse_document(text, origin=str(path))


def load_catalog(roots: Iterable[Union[str, Path]] = (),
                 documents: Iterable[Union[str, Path]] = ()) -> ScriptCatalog:
    """
    Builds the catalog from every directory root and YAML document given.
    The same (kind, action) appearing twice anywhere fails the whole load.
    """
    builder = CatalogBuilder()
    for root in roots:
        logger.info(f"Loading customizations from {root}")
        builder.extend(iter_directory_scripts(Path(root)))
    for document in documents:
        logger.info(f"Loading customization document {document}")
        builder.extend(iter_document_scripts(load_document(document), origin=str(document)))
    return builder.build()
