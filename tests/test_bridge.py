import math
import textwrap
from datetime import date, datetime, timedelta, timezone

import pytest

from kubeactions.core.errors import ResultShapeError
from kubeactions.core.models import GroupKind, Script
from kubeactions.sandbox.bridge import MAX_DEPTH, MAX_SAFE_INTEGER, clone, from_sandbox, numbers_equal, to_sandbox
from kubeactions.sandbox.sandbox import Sandbox


def test_to_sandbox_deep_copies():
    """
    ISOLATION TEST: Nothing the sandbox receives may alias the host tree.
    """
    host = {"spec": {"containers": [{"name": "web"}]}, "ports": (80, 443)}
    copied = to_sandbox(host)

    copied["spec"]["containers"][0]["name"] = "mutated"
    assert host["spec"]["containers"][0]["name"] == "web"
    # Tuples arrive as lists
    assert copied["ports"] == [80, 443]


def test_to_sandbox_rejects_foreign_objects():
    with pytest.raises(TypeError):
        to_sandbox({"when": object()})


@pytest.mark.parametrize("value, expected", [
    (3.0, 3),
    (-7.0, -7),
    (2.5, 2.5),
    (float(MAX_SAFE_INTEGER), MAX_SAFE_INTEGER),
])
def test_from_sandbox_folds_integral_floats(value, expected):
    result = from_sandbox(value)
    assert result == expected
    assert type(result) is type(expected)


def test_from_sandbox_keeps_large_floats():
    # Beyond 2**53 a float no longer round-trips exactly; it stays a float
    big = float(MAX_SAFE_INTEGER * 4)
    assert isinstance(from_sandbox(big), float)


def test_from_sandbox_keeps_ints_and_bools():
    assert from_sandbox(2 ** 62) == 2 ** 62
    assert from_sandbox(True) is True
    assert from_sandbox(None) is None


@pytest.mark.parametrize("bad", [
    math.nan,
    math.inf,
    {1: "int key"},
    {"set": {1, 2}},
    {"fn": len},
    {"raw": b"bytes"},
])
def test_from_sandbox_rejects_non_data(bad):
    with pytest.raises(ResultShapeError):
        from_sandbox(bad, kind="Deployment", action="restart")


def test_from_sandbox_reports_path():
    with pytest.raises(ResultShapeError) as exc:
        from_sandbox({"spec": {"ports": [80, {1, 2}]}}, kind="Service")
    assert "result.spec.ports[1]" in str(exc.value)
    assert exc.value.kind == "Service"


def test_clone_is_independent():
    tree = {"a": [{"b": 1}]}
    copied = clone(tree)
    copied["a"][0]["b"] = 2
    assert tree["a"][0]["b"] == 1


def test_numbers_equal_tolerates_int_float_but_not_bool():
    assert numbers_equal(3, 3.0)
    assert not numbers_equal(3, 3.5)
    assert not numbers_equal(True, 1)
    assert numbers_equal(False, False)
    assert not numbers_equal("3", 3)


def test_to_sandbox_renders_dates_as_rfc3339():
    """Timestamps reach scripts the way the API server sends them."""
    tree = {
        "utc": datetime(2019, 9, 4, 14, 10, 24, tzinfo=timezone.utc),
        "naive": datetime(2019, 9, 4, 14, 10, 24),
        "offset": datetime(2019, 9, 4, 16, 10, 24, tzinfo=timezone(timedelta(hours=2))),
        "day": date(2019, 9, 4),
    }
    assert to_sandbox(tree) == {
        "utc": "2019-09-04T14:10:24Z",
        "naive": "2019-09-04T14:10:24Z",
        "offset": "2019-09-04T14:10:24Z",
        "day": "2019-09-04",
    }


SAFE_INTEGERS = [0, 1, -1, 42, 2 ** 31, MAX_SAFE_INTEGER - 1, -(MAX_SAFE_INTEGER - 1)]


@pytest.mark.parametrize("n", SAFE_INTEGERS)
def test_safe_integers_round_trip(n):
    """
    ROUND-TRIP TEST: Any integer below 2**53 survives the bridge in both
    directions, even after a script routes it through float arithmetic.
    """
    result = from_sandbox(to_sandbox(n))
    assert result == n
    assert type(result) is int

    script = Script(group_kind=GroupKind("apps", "Deployment"), action="scale", source=textwrap.dedent("""
        def run(obj, params):
            obj["spec"]["replicas"] = obj["spec"]["replicas"] * 1.0
            return obj
    """))
    out = Sandbox().execute(script, {"spec": {"replicas": n}}, {})["spec"]["replicas"]
    assert out == n
    assert type(out) is int


def test_self_referencing_result_is_rejected():
    looped = {"name": "restart"}
    looped["self"] = looped
    with pytest.raises(ResultShapeError) as exc:
        from_sandbox([looped], kind="Deployment")
    assert "result[0].self" in str(exc.value)

    items = []
    items.append(items)
    with pytest.raises(ResultShapeError):
        from_sandbox(items)


def test_shared_subtree_is_not_a_cycle():
    labels = {"app": "web"}
    result = from_sandbox({"metadata": {"labels": labels}, "selector": {"matchLabels": labels}})
    assert result["metadata"]["labels"] == result["selector"]["matchLabels"] == {"app": "web"}
    assert result["metadata"]["labels"] is not result["selector"]["matchLabels"]


def test_overly_deep_result_is_rejected():
    deep = []
    node = deep
    for _ in range(MAX_DEPTH + 5):
        child = []
        node.append(child)
        node = child
    with pytest.raises(ResultShapeError) as exc:
        from_sandbox(deep)
    assert "deeper than" in str(exc.value)
