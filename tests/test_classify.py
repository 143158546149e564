import pytest

from common import aggregate, classify, to_pipelinerun_info
from schemas import RunState

from conftest import pipelinerun


@pytest.mark.parametrize(
    "reason, expected",
    [
        (None, RunState.NO_CONDITION),
        ("", RunState.NO_CONDITION),
        ("ResolvingPipelineRef", RunState.INIT),
        ("ResolvingTaskRef", RunState.INIT),
        ("Running", RunState.RUNNING),
        ("Succeeded", RunState.SUCCEEDED),
        ("Failed", RunState.FAILED),
        ("PipelineRunTimeout", RunState.UNKNOWN),
        ("Cancelled", RunState.UNKNOWN),
        ("running", RunState.UNKNOWN),
        ("succeeded", RunState.UNKNOWN),
    ],
)
def test_classify(reason, expected):
    assert classify(reason) == expected


def test_only_succeeded_and_failed_are_done():
    done = {state for state in RunState if state.is_done}
    assert done == {RunState.SUCCEEDED, RunState.FAILED}


def test_aggregate_counts_done_and_failed():
    verdict = aggregate([RunState.SUCCEEDED, RunState.FAILED, RunState.RUNNING])
    assert verdict.total == 3
    assert verdict.done_count == 2
    assert verdict.failed
    assert not verdict.done


def test_aggregate_empty_is_done():
    verdict = aggregate([])
    assert verdict.done
    assert not verdict.failed


def test_only_first_condition_is_consulted():
    run = to_pipelinerun_info(
        pipelinerun(
            "build-1",
            conditions=[
                {"type": "Succeeded", "reason": "Running"},
                {"type": "Other", "reason": "Failed"},
            ],
        )
    )
    assert run.reason == "Running"
    assert classify(run.reason) == RunState.RUNNING


def test_missing_status_has_no_condition():
    run = to_pipelinerun_info(pipelinerun("build-1"))
    assert run.conditions == []
    assert run.reason is None
    assert classify(run.reason) == RunState.NO_CONDITION


def test_condition_without_reason():
    run = to_pipelinerun_info(pipelinerun("build-1", conditions=[{"type": "Succeeded"}]))
    assert classify(run.reason) == RunState.NO_CONDITION
