import shutil

import pytest

from kubeactions.core.engine import ResourceActionEngine
from kubeactions.core.errors import LoadError
from kubeactions.verify.fixtures import find_suites, load_expected_objects, load_manifest, load_suite
from kubeactions.verify.harness import FixtureVerifier


@pytest.fixture
def workspace(tmp_path, customizations_root):
    """A writable copy of the fixture customizations."""
    root = tmp_path / "resource_customizations"
    shutil.copytree(customizations_root, root)
    return root


def verifier_for(root):
    return FixtureVerifier(ResourceActionEngine.from_paths([root]))


def test_all_fixture_suites_pass(customizations_root):
    """
    END-TO-END TEST: Every discovery and action fixture shipped with the
    customizations verifies cleanly.
    """
    reports = verifier_for(customizations_root).verify_root(customizations_root)

    failed = [f"{r.name}: {r.message}" for r in reports if not r.passed]
    assert not failed, failed
    assert len(reports) == 11
    assert {r.kind for r in reports} == {"Deployment", "CronJob"}


def test_suite_parsing(customizations_root):
    suites = find_suites(customizations_root)
    assert [p.parent.parent.name for p in suites] == ["Deployment", "CronJob"]

    suite = load_suite(customizations_root / "apps" / "Deployment" / "actions" / "action_test.yaml")
    assert len(suite.discovery_tests) == 2
    scale = next(t for t in suite.action_tests if t.action == "scale")
    assert scale.parameters == {"replicas": "3"}
    assert suite.resolve(scale.input_path).is_file()


def test_expected_output_forms(customizations_root):
    testdata = customizations_root / "batch" / "CronJob" / "actions" / "testdata"
    # Legacy single manifest
    assert [o["kind"] for o in load_expected_objects(testdata / "cronjob-suspended.yaml")] == ["CronJob"]
    # List of operation records
    jobs = load_expected_objects(testdata / "job.yaml")
    assert jobs[0]["metadata"]["name"] == "nightly-job-expected-template"


def test_wrong_expectation_fails_with_diff(workspace):
    scaled = workspace / "apps" / "Deployment" / "actions" / "testdata" / "deployment-scaled.yaml"
    scaled.write_text(scaled.read_text().replace("replicas: 3", "replicas: 5"))

    reports = verifier_for(workspace).verify_root(workspace)
    failed = [r for r in reports if not r.passed]

    assert [r.name for r in failed] == ["actions/scale/testdata/deployment.yaml"]
    assert "spec.replicas" in failed[0].message
    label, expected, actual = failed[0].diffs[0]
    assert expected["spec"]["replicas"] == 5
    assert actual["spec"]["replicas"] == 3


def test_generated_job_must_match_source_prefix(workspace):
    job = workspace / "batch" / "CronJob" / "actions" / "testdata" / "job.yaml"
    job.write_text(job.read_text().replace("nightly-job-expected-template", "other-job"))

    reports = verifier_for(workspace).verify_root(workspace)
    failed = [r for r in reports if not r.passed]

    assert len(failed) == 1
    assert "no matching expected resource" in failed[0].message


def test_unexpected_discovery_result_fails(workspace):
    suite = workspace / "apps" / "Deployment" / "actions" / "action_test.yaml"
    suite.write_text(suite.read_text().replace("displayName: Scale", "displayName: Resize"))

    reports = verifier_for(workspace).verify_root(workspace)
    failed = [r for r in reports if not r.passed]

    assert len(failed) == 2
    assert all("scale" in r.message for r in failed)


def test_broken_suite_is_reported_not_raised(workspace):
    suite = workspace / "batch" / "CronJob" / "actions" / "action_test.yaml"
    suite.write_text("actionTests:\n  - action: suspend\n")

    reports = verifier_for(workspace).verify_suite(suite)
    assert len(reports) == 1
    assert reports[0].passed is False
    assert "LoadError" in reports[0].message


def test_load_manifest_rejects_non_maps(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(LoadError):
        load_manifest(path)
    with pytest.raises(LoadError):
        load_manifest(tmp_path / "missing.yaml")


def test_generate_summary(customizations_root):
    verifier = verifier_for(customizations_root)
    summary = verifier.generate_summary(verifier.verify_root(customizations_root))
    assert summary["total_cases"] == 11
    assert summary["failed"] == 0
    assert summary["success_rate"] == 1.0


def test_unquoted_timestamps_stay_strings(tmp_path):
    """
    Kubernetes testdata routinely carries unquoted RFC 3339 timestamps; they
    must load as the same strings instead of datetime objects.
    """
    path = tmp_path / "deployment.yaml"
    path.write_text(
        "apiVersion: apps/v1\n"
        "kind: Deployment\n"
        "metadata:\n"
        "  name: web\n"
        "  creationTimestamp: 2019-09-04T14:10:24Z\n"
        "spec:\n"
        "  template:\n"
        "    metadata:\n"
        "      annotations:\n"
        "        kubectl.kubernetes.io/restartedAt: 2019-09-04 14:10:24\n"
    )
    manifest = load_manifest(path)
    assert manifest["metadata"]["creationTimestamp"] == "2019-09-04T14:10:24Z"
    assert manifest["spec"]["template"]["metadata"]["annotations"] == {
        "kubectl.kubernetes.io/restartedAt": "2019-09-04 14:10:24"
    }


def test_unbridgeable_manifest_is_load_error(tmp_path):
    path = tmp_path / "secret.yaml"
    path.write_text("apiVersion: v1\nkind: Secret\nmetadata:\n  name: s\ndata:\n  raw: !!binary aGVsbG8=\n")
    with pytest.raises(LoadError):
        load_manifest(path)
