#!/usr/bin/env python3
"""
KUBEACTIONS FIXTURE VERIFIER
----------------------------
Runs every `action_test.yaml` under a customization root against the engine
and reports one CaseReport per discovery or action test.

Discovery cases pass when every descriptor the script produces appears in
the fixture's expected list. Action cases pass when every impacted resource
pairs with an expected resource (Identity Matcher) and the two are
structurally equal after kind normalization.

Author: KubeActions Team
Date: 2026-10-17
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from kubeactions.core.engine import ResourceActionEngine
from kubeactions.core.errors import ActionEngineError
from kubeactions.core.models import K8sOperation, ResourceIdentity
from kubeactions.sandbox.bridge import clone
from kubeactions.verify.diff import diff
from kubeactions.verify.fixtures import (
    ActionTest,
    ActionTestSuite,
    DiscoveryTest,
    find_suites,
    load_expected_objects,
    load_manifest,
    load_suite,
)
from kubeactions.verify.matcher import MatchStrategy, find_expected, match_strategy
from kubeactions.verify.normalizer import KindNormalizer, NormalizationError, Normalizer

logger = logging.getLogger("kubeactions.verify")


@dataclass
class CaseReport:
    name: str
    suite: str
    kind: str = "Unknown"
    passed: bool = False
    message: str = ""
    # (label, normalized expected, normalized actual) for every mismatching pair
    diffs: List[Tuple[str, Dict[str, Any], Dict[str, Any]]] = field(default_factory=list)


class FixtureVerifier:
    """Drives the engine through fixture suites; never touches a cluster."""

    def __init__(self, engine: ResourceActionEngine, normalizer: Optional[Normalizer] = None):
        self.engine = engine
        self.normalizer = normalizer or KindNormalizer()

    def verify_root(self, root: Union[str, Path]) -> List[CaseReport]:
        reports: List[CaseReport] = []
        for suite_path in find_suites(root):
            reports.extend(self.verify_suite(suite_path))
        return reports

    def verify_suite(self, suite_path: Union[str, Path]) -> List[CaseReport]:
        try:
            suite = load_suite(suite_path)
        except ActionEngineError as e:
            logger.error(f"Unable to load suite {suite_path}: {e}")
            return [CaseReport(name="suite", suite=str(suite_path), message=f"{type(e).__name__}: {e}")]

        reports = [self._discovery_case(suite, test) for test in suite.discovery_tests]
        reports.extend(self._action_case(suite, test) for test in suite.action_tests)
        return reports

    def _discovery_case(self, suite: ActionTestSuite, test: DiscoveryTest) -> CaseReport:
        report = CaseReport(name=f"discovery/{test.input_path}", suite=str(suite.directory))
        try:
            source = load_manifest(suite.resolve(test.input_path))
            report.kind = source.get("kind", "Unknown")
            produced = self.engine.discover(source)
        except ActionEngineError as e:
            report.message = f"{type(e).__name__}: {e}"
            return report

        unexpected = [d.name for d in produced if d not in test.result]
        if unexpected:
            report.message = f"Unexpected or mismatching actions: {', '.join(unexpected)}"
            return report

        report.passed = True
        report.message = f"{len(produced)} actions"
        return report

    def _action_case(self, suite: ActionTestSuite, test: ActionTest) -> CaseReport:
        report = CaseReport(name=f"actions/{test.action}/{test.input_path}", suite=str(suite.directory))
        try:
            source = load_manifest(suite.resolve(test.input_path))
            report.kind = source.get("kind", "Unknown")
            impacted = self.engine.run_action(source, test.action, test.parameters)
            expected_objects = load_expected_objects(suite.resolve(test.expected_output_path))
        except ActionEngineError as e:
            report.message = f"{type(e).__name__}: {e}"
            return report

        source_identity = ResourceIdentity.of(source)
        failures: List[str] = []
        for item in impacted:
            actual = clone(item.resource)
            label = f"{item.operation.value} {item.identity}"
            expected = find_expected(expected_objects, actual, source)
            if expected is None:
                failures.append(f"{label}: no matching expected resource")
                continue

            if item.operation is K8sOperation.PATCH:
                if item.identity != source_identity:
                    failures.append(f"{label}: patch does not target {source_identity}")
                    continue
            elif match_strategy(source_identity.gvk.kind, item.identity.gvk.kind) \
                    is MatchStrategy.SOURCE_NAME_PREFIX:
                # The cluster will pick the real name; compare against the fixture's
                actual.setdefault("metadata", {})["name"] = ResourceIdentity.of(expected).name

            try:
                result = diff(expected, actual, self.normalizer)
            except NormalizationError as e:
                failures.append(f"{label}: {e}")
                continue
            if result.modified:
                failures.append(f"{label}: differs at {', '.join(result.paths)}")
                report.diffs.append((label, result.expected, result.actual))

        if failures:
            report.message = "; ".join(failures)
            return report

        report.passed = True
        report.message = f"{len(impacted)} impacted resources"
        return report

    @staticmethod
    def generate_summary(reports: List[CaseReport]) -> Dict[str, Any]:
        """Aggregate pass/fail counts for the final report panel."""
        total = len(reports)
        passed = sum(1 for r in reports if r.passed)
        return {
            "total_cases": total,
            "passed": passed,
            "failed": total - passed,
            "success_rate": (passed / total) if total > 0 else 0,
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        }
