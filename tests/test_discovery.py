import pytest

from kubeactions.core.engine import ResourceActionEngine
from kubeactions.core.errors import ExecutionError, ResultShapeError
from kubeactions.core.models import ActionDescriptor
from kubeactions.runners.discovery import descriptor_from_record

DISCOVER = ("apps/Deployment", None)


def test_no_discovery_script_means_no_actions(make_engine, deployment):
    engine = make_engine({})
    assert engine.discover(deployment) == []


def test_fixture_discovery_depends_on_live_state(customizations_root, deployment):
    """
    Availability follows the resource: a paused Deployment offers resume, not pause.
    """
    engine = ResourceActionEngine.from_paths([customizations_root])

    running = {d.name: d for d in engine.discover(deployment)}
    assert running["pause"].locked is False
    assert running["resume"].locked is True
    assert running["scale"].display_name == "Scale"

    deployment["spec"]["paused"] = True
    paused = {d.name: d for d in engine.discover(deployment)}
    assert paused["pause"].locked is True
    assert paused["resume"].locked is False


def test_discovery_is_idempotent_and_pure(customizations_root, cronjob):
    engine = ResourceActionEngine.from_paths([customizations_root])
    snapshot = {"spec": dict(cronjob["spec"])}

    first = engine.discover(cronjob)
    second = engine.discover(cronjob)

    assert first == second
    assert cronjob["spec"] == snapshot["spec"]
    assert [d.name for d in first] == ["create-job", "suspend", "resume"]


def test_mapping_form_uses_keys_as_names(make_engine, deployment):
    engine = make_engine({DISCOVER: """
        def discover(obj):
            return {"restart": {"disabled": False}, "scale": {"displayName": "Scale"}}
    """})
    assert engine.discover(deployment) == [
        ActionDescriptor(name="restart"),
        ActionDescriptor(name="scale", display_name="Scale"),
    ]


@pytest.mark.parametrize("body", [
    'return "restart"',
    'return [{"name": "restart"}, {"name": "restart"}]',
    'return [{"displayName": "Nameless"}]',
    'return [{"name": "restart", "locked": "yes"}]',
    'return [{"name": "restart", "displayName": 7}]',
    'return ["restart"]',
])
def test_malformed_results_are_rejected(make_engine, deployment, body):
    engine = make_engine({DISCOVER: "def discover(obj):\n    " + body + "\n"})
    with pytest.raises(ResultShapeError) as exc:
        engine.discover(deployment)
    assert exc.value.kind == "Deployment"


def test_failing_script_surfaces_once(make_engine, deployment):
    engine = make_engine({DISCOVER: """
        def discover(obj):
            return [{"name": obj["status"]["phase"]}]
    """})
    with pytest.raises(ExecutionError):
        engine.discover(deployment)


def test_descriptor_from_record_defaults():
    descriptor = descriptor_from_record({"name": "restart", "locked": None})
    assert descriptor == ActionDescriptor(name="restart", display_name=None, locked=False, icon_class=None)
