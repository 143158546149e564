from typing import Any, List, Optional

import pytest


def pipelinerun(name: str, reason: Optional[str] = None, *, conditions: Optional[list] = None) -> dict:
    """Build a PipelineRun document as returned by the API.
    With neither `reason` nor `conditions`, the run has no status yet."""
    document = {
        "apiVersion": "tekton.dev/v1",
        "kind": "PipelineRun",
        "metadata": {"name": name, "namespace": "default"},
    }
    if conditions is None and reason is not None:
        conditions = [{"type": "Succeeded", "status": "Unknown", "reason": reason}]
    if conditions is not None:
        document["status"] = {"conditions": conditions}
    return document


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps: List[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCustomObjectsApi:
    """Stands in for kubernetes.client.CustomObjectsApi.

    Each call consumes the next scripted response. Once the script runs out,
    the last response is repeated. A response that is an exception is raised.
    For `list_namespaced_custom_object`, a list response is wrapped as `items`.
    """

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[tuple] = []

    def _next(self) -> Any:
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def get_namespaced_custom_object(self, group, version, namespace, plural, name, **kwargs):
        self.calls.append(("get", group, version, namespace, plural, name))
        return self._next()

    def list_namespaced_custom_object(self, group, version, namespace, plural, **kwargs):
        self.calls.append(("list", group, version, namespace, plural, kwargs.get("label_selector")))
        return {"apiVersion": f"{group}/{version}", "items": self._next(), "kind": "PipelineRunList"}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
