import textwrap
from pathlib import Path

import pytest

from kubeactions.catalog.catalog import CatalogBuilder
from kubeactions.core.engine import ResourceActionEngine
from kubeactions.core.models import GroupKind, Script
from kubeactions.sandbox.context import TrustLevel

FIXTURES = Path(__file__).parent / "fixtures"
CUSTOMIZATIONS = FIXTURES / "resource_customizations"


def script(group_kind, source, action=None):
    """Builds an in-memory Script from an indented source block."""
    group, _, kind = group_kind.rpartition("/")
    return Script(group_kind=GroupKind(group, kind), source=textwrap.dedent(source), action=action)


@pytest.fixture
def customizations_root():
    return CUSTOMIZATIONS


@pytest.fixture
def make_engine():
    """
    Engine factory over in-memory scripts:
        make_engine({("apps/Deployment", None): "def discover(obj): ..."})
    """
    def _make(scripts, trust=TrustLevel.RESTRICTED):
        builder = CatalogBuilder()
        for (group_kind, action), source in scripts.items():
            builder.add(script(group_kind, source, action))
        return ResourceActionEngine(builder.build(), trust=trust)
    return _make


@pytest.fixture
def deployment():
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": "web", "namespace": "default", "labels": {"app": "web"}},
        "spec": {
            "replicas": 2,
            "selector": {"matchLabels": {"app": "web"}},
            "template": {
                "metadata": {"labels": {"app": "web"}},
                "spec": {"containers": [{"name": "web", "image": "nginx:1.27"}]},
            },
        },
    }


@pytest.fixture
def cronjob():
    return {
        "apiVersion": "batch/v1",
        "kind": "CronJob",
        "metadata": {"name": "nightly-job", "namespace": "default", "uid": "c0ffee"},
        "spec": {
            "schedule": "0 2 * * *",
            "suspend": False,
            "jobTemplate": {
                "metadata": {"labels": {"app": "nightly"}},
                "spec": {"template": {"spec": {"restartPolicy": "OnFailure", "containers": []}}},
            },
        },
    }
