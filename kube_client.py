from pathlib import Path
from typing import Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from schemas import ClusterConfigError
from utils import setup_logger

logger = setup_logger(__file__)

SERVICE_ACCOUNT_NAMESPACE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


def load_cluster_config(kubeconfig: Optional[str] = None, context: Optional[str] = None) -> bool:
    """Load credentials. In-cluster first, then kubeconfig.

    :return: True if the in-cluster service account config was loaded.
    """
    if kubeconfig is None and context is None:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster config")
            return True
        except ConfigException as e:
            logger.info(f"Not running in a cluster, trying kubeconfig. reason: `{e}`")

    try:
        config.load_kube_config(config_file=kubeconfig, context=context)
    except (ConfigException, FileNotFoundError) as e:
        raise ClusterConfigError(
            f"Failed to load kubeconfig. kubeconfig: `{kubeconfig}`, context: `{context}`"
        ) from e
    logger.info(f"Loaded kubeconfig. kubeconfig: `{kubeconfig}`, context: `{context}`")
    return False


def resolve_namespace(
    namespace: Optional[str],
    *,
    in_cluster: bool,
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
) -> str:
    if namespace:
        return namespace

    if in_cluster and SERVICE_ACCOUNT_NAMESPACE.exists():
        return SERVICE_ACCOUNT_NAMESPACE.read_text().strip() or "default"

    if not in_cluster:
        try:
            contexts, active = config.list_kube_config_contexts(config_file=kubeconfig)
        except ConfigException:
            return "default"
        selected = active
        if context:
            selected = next((c for c in contexts if c["name"] == context), active)
        return (selected or {}).get("context", {}).get("namespace") or "default"

    return "default"


def custom_objects_api() -> client.CustomObjectsApi:
    return client.CustomObjectsApi()
