import pytest

from utils import label_selector, parse_label, query

DOCUMENT = {
    "metadata": {"name": "build-1"},
    "status": {"conditions": [{"reason": "Running"}, {"reason": "Other"}]},
    "items": [{"metadata": {"name": "a"}}, {"metadata": {"name": "b"}}],
}


def test_query_nested():
    assert query(DOCUMENT, "metadata/name") == "build-1"
    assert query(DOCUMENT, "status/conditions/0/reason") == "Running"


def test_query_fans_out_over_lists():
    assert query(DOCUMENT, "items/metadata/name") == ["a", "b"]
    assert query(DOCUMENT, "status/conditions/reason") == ["Running", "Other"]


def test_query_missing():
    with pytest.raises(KeyError):
        query(DOCUMENT, "spec/pipelineRef")
    assert query(DOCUMENT, "spec/pipelineRef", default=None) is None
    assert query({"status": {"conditions": []}}, "status/conditions/0/reason", default="") == ""


def test_query_empty_path_returns_document():
    assert query(DOCUMENT, "") is DOCUMENT


@pytest.mark.parametrize(
    "value, expected",
    [
        ("app=ci", ("app", "ci")),
        ("tekton.dev/pipeline=build", ("tekton.dev/pipeline", "build")),
        ("app=", ("app", "")),
        ("a=b=c", ("a", "b=c")),
        ("app= ci", ("app", " ci")),
    ],
)
def test_parse_label(value, expected):
    assert parse_label(value) == expected


@pytest.mark.parametrize("value", ["app", "=ci", ""])
def test_parse_label_invalid(value):
    with pytest.raises(ValueError):
        parse_label(value)


def test_label_selector():
    assert label_selector({"app": "ci", "env": "prod"}) == "app=ci,env=prod"
