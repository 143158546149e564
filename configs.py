from typing import Dict, List, Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, ValidationError, model_validator

from schemas import UsageError
from utils import merge_dicts, setup_logger

logger = setup_logger(__file__)

TEKTON_GROUP = "tekton.dev"
PIPELINERUN_PLURAL = "pipelineruns"
DEFAULT_TIMEOUT = 600
POLL_INTERVAL = 5
"""Seconds between polls. Not configurable."""


class ConfigSelector(BaseModel):
    """Which PipelineRuns to wait for.
    Either a single `name`, or a set of `labels` that must all match. Never both."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    """Name of a single PipelineRun."""

    labels: Dict[str, str] = Field(default_factory=dict)
    """Label key/value pairs. A PipelineRun is selected if it has all of them."""

    @model_validator(mode="after")
    def exactly_one(self) -> "ConfigSelector":
        has_name = bool(self.name)
        has_labels = bool(self.labels)
        if has_name == has_labels:
            raise ValueError("Exactly one of a name or at least one label must be given.")
        return self

    @classmethod
    def from_args(cls, name: Optional[str], labels: List[Tuple[str, str]]) -> "ConfigSelector":
        """Build from parsed `-n` and `-l` arguments. A key repeated with a
        different value raises UsageError."""
        merged: Dict[str, str] = {}
        for key, value in labels:
            if key in merged and merged[key] != value:
                raise UsageError(
                    f"Label given twice with different values. key: `{key}`, "
                    f"values: `{merged[key]}`, `{value}`"
                )
            merged[key] = value
        try:
            return cls(name=name, labels=merged)
        except ValidationError as e:
            raise UsageError(
                f"Invalid selector. name: `{name}`, labels: `{labels}`. "
                f"{e.errors()[0]['msg']}"
            ) from e

    def describe(self) -> str:
        if self.name:
            return f"name={self.name}"
        return ",".join([f"{k}={v}" for k, v in self.labels.items()])


class ConfigWait(BaseModel):
    """Cluster access and deadline settings.
    Values come from YAML config files, overridden by command line flags."""

    model_config = ConfigDict(extra="forbid")

    namespace: Optional[str] = None
    """Namespace of the PipelineRuns.
    Defaults to the service account namespace when running in-cluster,
    else the namespace of the kubeconfig context, else `default`."""

    api_version: Literal["v1", "v1beta1"] = "v1"
    """Version of the `tekton.dev` API group to query."""

    kubeconfig: Optional[str] = None
    """Path to a kubeconfig file. Only used outside the cluster."""

    context: Optional[str] = None
    """kubeconfig context to use. Only used outside the cluster."""

    timeout: NonNegativeInt = DEFAULT_TIMEOUT
    """Seconds to wait for all PipelineRuns to finish."""


def load_configs(config_files: List[str], overrides: Optional[dict] = None) -> ConfigWait:
    """Load and merge YAML config files in order. Later files win, `overrides` win over all.
    Keys in `overrides` whose value is None are ignored."""
    logger.info(f"Loading configs: {config_files}")
    loaded = []
    for config_file in config_files:
        try:
            with open(config_file, "r") as file:
                config = yaml.safe_load(file) or {}
        except OSError as e:
            raise UsageError(f"Cannot read config file. file: `{config_file}`, error: `{e}`") from e
        except yaml.YAMLError as e:
            raise UsageError(f"Invalid YAML in config file. file: `{config_file}`, error: `{e}`") from e
        if not isinstance(config, dict):
            raise UsageError(f"Config file must contain a mapping. file: `{config_file}`")
        loaded.append(config)

    overrides = {key: value for key, value in (overrides or {}).items() if value is not None}
    loaded.append(overrides)
    try:
        return ConfigWait.model_validate(merge_dicts(loaded))
    except ValidationError as e:
        raise UsageError(f"Invalid configuration. files: `{config_files}`, error: `{e}`") from e
