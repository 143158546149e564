from typing import Iterable, List

import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from configs import PIPELINERUN_PLURAL, TEKTON_GROUP, ConfigSelector
from schemas import NotFoundError, PipelineRunInfo, RunState, RunVerdict, TransientFetchError
from utils import label_selector, query, setup_logger

logger = setup_logger(__file__)

REASON_STATES = {
    "ResolvingPipelineRef": RunState.INIT,
    "ResolvingTaskRef": RunState.INIT,
    "Running": RunState.RUNNING,
    "Succeeded": RunState.SUCCEEDED,
    "Failed": RunState.FAILED,
}


def classify(reason: str | None) -> RunState:
    """Map the reason of a PipelineRun's first condition to a coarse state.
    Matching is exact and case sensitive."""
    if not reason:
        return RunState.NO_CONDITION
    return REASON_STATES.get(reason, RunState.UNKNOWN)


def aggregate(states: Iterable[RunState]) -> RunVerdict:
    states = list(states)
    return RunVerdict(
        total=len(states),
        done_count=sum(1 for state in states if state.is_done),
        failed=any(state == RunState.FAILED for state in states),
    )


def to_pipelinerun_info(document: dict) -> PipelineRunInfo:
    conditions = query(document, "status/conditions", default=None) or []
    return PipelineRunInfo(name=query(document, "metadata/name"), conditions=conditions)


def fetch_snapshot(
    api: client.CustomObjectsApi,
    selector: ConfigSelector,
    *,
    namespace: str,
    api_version: str = "v1",
) -> List[PipelineRunInfo]:
    """Fetch the current state of every PipelineRun matching `selector`.

    :raises NotFoundError: The named PipelineRun does not exist.
    :raises TransientFetchError: Any other API or connection failure.
    """
    try:
        if selector.name:
            document = api.get_namespaced_custom_object(
                TEKTON_GROUP, api_version, namespace, PIPELINERUN_PLURAL, selector.name
            )
            documents = [document]
        else:
            response = api.list_namespaced_custom_object(
                TEKTON_GROUP,
                api_version,
                namespace,
                PIPELINERUN_PLURAL,
                label_selector=label_selector(selector.labels),
            )
            documents = query(response, "items", default=None) or []
    except ApiException as e:
        if e.status == 404 and selector.name:
            raise NotFoundError(
                f"PipelineRun not found. name: `{selector.name}`, namespace: `{namespace}`"
            ) from e
        raise TransientFetchError(
            f"Error querying PipelineRuns. selector: `{selector.describe()}`, "
            f"status: `{e.status}`, reason: `{e.reason}`"
        ) from e
    except urllib3.exceptions.HTTPError as e:
        raise TransientFetchError(
            f"Error connecting to the cluster. selector: `{selector.describe()}`, exception: `{e}`"
        ) from e

    return [to_pipelinerun_info(document) for document in documents]
