#!/usr/bin/env python3
"""
KUBEACTIONS EXPORTER
--------------------
Renders manifests back to YAML with the conventional Kubernetes key order,
for CLI output and for side-by-side diffs of verification failures.

Author: KubeActions Team
Date: 2026-10-17
"""

import io
from typing import Any, Dict, List, Union

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap


class ManifestExporter:
    """
    The Reconstructor: converts manifest dictionaries into YAML strings.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        # Standard K8s: 2 spaces, sequences indented 4 (offset 2)
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096
        self.preferred_order = ["apiVersion", "kind", "metadata", "spec", "data", "status"]

    def _get_sorted_map(self, data: Any) -> Any:
        """
        Recursively moves well-known Kubernetes keys first; other keys keep
        their original relative order.
        """
        if isinstance(data, list):
            return [self._get_sorted_map(item) for item in data]
        if not isinstance(data, dict):
            return data

        keys = list(data.keys())

        def sort_logic(key):
            if key in self.preferred_order:
                return self.preferred_order.index(key)
            # Unknown keys keep their relative original position
            return len(self.preferred_order) + keys.index(key)

        sorted_map = CommentedMap()
        for key in sorted(keys, key=sort_logic):
            sorted_map[key] = self._get_sorted_map(data[key])
        return sorted_map

    def export(self, manifests: Union[Dict[str, Any], List[Dict[str, Any]]]) -> str:
        """
        Exports one or more manifests into a single string with explicit
        document separators.
        """
        stream = io.StringIO()
        docs = manifests if isinstance(manifests, list) else [manifests]

        for i, doc in enumerate(docs):
            if doc is None:
                continue
            if i > 0:
                stream.write("---\n")
            self.yaml.dump(self._get_sorted_map(doc), stream)

        return stream.getvalue()
