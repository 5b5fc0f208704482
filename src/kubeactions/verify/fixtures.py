#!/usr/bin/env python3
"""
KUBEACTIONS FIXTURES
--------------------
Reads `action_test.yaml` suites and the manifests they point at.

    discoveryTests:
      - inputPath: testdata/deployment.yaml
        result:
          - name: restart
    actionTests:
      - action: scale
        inputPath: testdata/deployment.yaml
        expectedOutputPath: testdata/deployment-scaled.yaml
        parameters:
          replicas: "3"

Expected outputs are either one legacy manifest or a list of
{operation, resource} wrapper records.

Author: KubeActions Team
Date: 2026-10-17
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from ruamel.yaml import YAML
from ruamel.yaml.constructor import SafeConstructor
from ruamel.yaml.error import YAMLError

from kubeactions.core.errors import LoadError, ResultShapeError
from kubeactions.core.models import ActionDescriptor, ResourceManifest
from kubeactions.runners.action import RESOURCE_KEYS
from kubeactions.runners.discovery import descriptor_from_record
from kubeactions.sandbox.bridge import to_sandbox

SUITE_FILE = "action_test.yaml"


@dataclass
class DiscoveryTest:
    input_path: str
    result: List[ActionDescriptor] = field(default_factory=list)


@dataclass
class ActionTest:
    action: str
    input_path: str
    expected_output_path: str
    parameters: Dict[str, str] = field(default_factory=dict)


@dataclass
class ActionTestSuite:
    directory: Path
    discovery_tests: List[DiscoveryTest] = field(default_factory=list)
    action_tests: List[ActionTest] = field(default_factory=list)

    def resolve(self, relative: str) -> Path:
        return self.directory / relative


class ManifestConstructor(SafeConstructor):
    """Safe constructor that leaves timestamps as the strings Kubernetes sends."""

    def construct_timestamp_as_str(self, node):
        return self.construct_scalar(node)


ManifestConstructor.add_constructor("tag:yaml.org,2002:timestamp",
                                    ManifestConstructor.construct_timestamp_as_str)


def manifest_yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.Constructor = ManifestConstructor
    return yaml


def _load_yaml(path: Path) -> Any:
    try:
        # Plain builtins only: the bridge and diff expect a JSON-like tree
        return to_sandbox(manifest_yaml().load(path.read_text(encoding="utf-8-sig")))
    except (OSError, UnicodeDecodeError, YAMLError, TypeError) as e:
        raise LoadError(f"Unable to load {path}: {e}") from e


def load_manifest(path: Union[str, Path]) -> ResourceManifest:
    data = _load_yaml(Path(path))
    if not isinstance(data, dict):
        raise LoadError(f"{path} does not contain a resource manifest")
    return data


def load_expected_objects(path: Union[str, Path]) -> List[ResourceManifest]:
    """
    Expected output as a list of manifests: a bare manifest is the legacy
    single-object form, a list holds operation wrapper records.
    """
    data = _load_yaml(Path(path))
    if isinstance(data, dict):
        return [data]
    if not isinstance(data, list):
        raise LoadError(f"{path} holds neither a manifest nor a list of operation records")

    objects = []
    for i, record in enumerate(data):
        resource = None
        if isinstance(record, dict):
            resource = next((record[k] for k in RESOURCE_KEYS if k in record), None)
        if not isinstance(resource, dict):
            raise LoadError(f"{path}: record {i} has no resource manifest")
        objects.append(resource)
    return objects


def load_suite(path: Union[str, Path]) -> ActionTestSuite:
    """Parses one action_test.yaml; relative paths resolve against its directory."""
    path = Path(path)
    data = _load_yaml(path) or {}
    if not isinstance(data, dict):
        raise LoadError(f"{path}: test suite must be a map")

    suite = ActionTestSuite(directory=path.parent)
    for i, entry in enumerate(data.get("discoveryTests") or []):
        try:
            expected = [descriptor_from_record(r) for r in entry.get("result") or []]
            suite.discovery_tests.append(DiscoveryTest(input_path=entry["inputPath"], result=expected))
        except ResultShapeError as e:
            raise LoadError(f"{path}: discoveryTests[{i}]: {e}") from e
        except (KeyError, AttributeError) as e:
            raise LoadError(f"{path}: discoveryTests[{i}] is missing {e}") from e

    for i, entry in enumerate(data.get("actionTests") or []):
        try:
            suite.action_tests.append(ActionTest(
                action=entry["action"],
                input_path=entry["inputPath"],
                expected_output_path=entry["expectedOutputPath"],
                parameters={str(k): str(v) for k, v in (entry.get("parameters") or {}).items()},
            ))
        except (KeyError, AttributeError) as e:
            raise LoadError(f"{path}: actionTests[{i}] is missing {e}") from e
    return suite


def find_suites(root: Union[str, Path]) -> List[Path]:
    """Every action_test.yaml below a customization root, in stable order."""
    return sorted(p for p in Path(root).rglob(SUITE_FILE) if p.is_file())
