import argparse
import sys
import time
from argparse import Namespace
from pathlib import Path
from typing import Callable, List, Optional

from kubernetes import client

from common import fetch_snapshot
from configs import ConfigSelector, load_configs
from kube_client import custom_objects_api, load_cluster_config, resolve_namespace
from poller import Poller
from schemas import (
    EXIT_FETCH_ERROR,
    EXIT_USAGE,
    ClusterConfigError,
    NotFoundError,
    UsageError,
)
from utils import parse_label, setup_logger

logger = setup_logger(__file__)


class HelpAction(argparse.Action):
    """Print help and exit with the usage error code, like any other usage problem."""

    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help(sys.stderr)
        parser.exit(EXIT_USAGE)


def label_type(value: str) -> tuple[str, str]:
    try:
        return parse_label(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Wait for Tekton PipelineRuns to finish. "
            "Exits 0 if all succeeded, 21 if any failed, 124 on timeout."
        ),
        add_help=False,
    )
    parser.add_argument("-h", "--help", action=HelpAction, help="Show this help and exit.")
    parser.add_argument("-n", dest="name", help="Name of the PipelineRun. Conflicts with -l.")
    parser.add_argument(
        "-l",
        dest="labels",
        type=label_type,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Label selector. Can be passed multiple times, all labels must match. Conflicts with -n.",
    )
    parser.add_argument(
        "-t",
        dest="timeout",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Seconds to wait before giving up (default 600).",
    )
    parser.add_argument("--namespace", default=None, help="Namespace of the PipelineRuns.")
    parser.add_argument(
        "--api-version",
        choices=["v1", "v1beta1"],
        default=None,
        help="tekton.dev API version (default v1).",
    )
    parser.add_argument("--kubeconfig", default=None, help="Path to a kubeconfig file.")
    parser.add_argument("--context", default=None, help="kubeconfig context to use.")
    parser.add_argument(
        "--config",
        type=Path,
        action="append",
        dest="config_files",
        default=[],
        help="Paths to YAML config files. Can be passed multiple times.",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(
    args: Namespace,
    *,
    api: Optional[client.CustomObjectsApi] = None,
    clock: Callable[[], float] = time.time,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    try:
        selector = ConfigSelector.from_args(args.name, args.labels)
        wait_config = load_configs(
            args.config_files,
            overrides={
                "namespace": args.namespace,
                "api_version": args.api_version,
                "kubeconfig": args.kubeconfig,
                "context": args.context,
                "timeout": args.timeout,
            },
        )
    except UsageError as e:
        logger.error(str(e))
        build_parser().print_usage(sys.stderr)
        return EXIT_USAGE

    if api is None:
        try:
            in_cluster = load_cluster_config(wait_config.kubeconfig, wait_config.context)
        except ClusterConfigError as e:
            logger.error(f"{e} cause: `{e.__cause__}`")
            return EXIT_FETCH_ERROR
        namespace = resolve_namespace(
            wait_config.namespace,
            in_cluster=in_cluster,
            kubeconfig=wait_config.kubeconfig,
            context=wait_config.context,
        )
        api = custom_objects_api()
    else:
        namespace = wait_config.namespace or "default"

    logger.info(f"Using namespace `{namespace}`, api version `{wait_config.api_version}`")

    def fetch(sel: ConfigSelector):
        return fetch_snapshot(api, sel, namespace=namespace, api_version=wait_config.api_version)

    poller = Poller(fetch, clock=clock, sleep=sleep)
    try:
        outcome = poller.run(selector, wait_config.timeout)
    except NotFoundError as e:
        logger.error(str(e))
        return EXIT_FETCH_ERROR

    return outcome.exit_code


def run() -> None:
    sys.exit(main(parse_args()))


if __name__ == "__main__":
    run()
