import datetime
import logging
from pathlib import PurePosixPath
from typing import Any, Dict, Iterable

LOGFMT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

_MISSING = object()


class UTCFormatter(logging.Formatter):
    """Formatter that outputs UTC timestamps with milliseconds."""

    def formatTime(self, record, datefmt=None):
        dt = datetime.datetime.fromtimestamp(record.created, datetime.timezone.utc)
        if datefmt is None:
            datefmt = DATEFMT
        base = dt.strftime(datefmt)
        return f"{base}.{int(record.msecs):03d}"


def setup_logger(name: str) -> logging.Logger:
    handler = logging.StreamHandler()
    handler.setFormatter(UTCFormatter(LOGFMT, datefmt=DATEFMT))

    logging.basicConfig(level=logging.INFO, handlers=[handler], force=True)
    return logging.getLogger(name)


def query(document: Any, path: str, default: Any = _MISSING) -> Any:
    """
    Extract a value from a decoded JSON document.

    `path` is slash separated, eg. `status/conditions/0/reason`.
    Numeric parts index into lists. A non-numeric part applied to a list
    is applied to every item, and the results are collected in a list.

    If `default` is given it is returned when any part of the path is missing.
    Otherwise the underlying KeyError/IndexError/TypeError propagates.
    """

    def extract(obj: Any, parts: tuple, is_list=False):
        if isinstance(obj, list) and parts and not parts[0].isdigit():
            results = []
            for item in obj:
                results.extend(extract(item, parts, is_list=True))
            return results
        if not parts:
            return [obj] if is_list else obj
        if isinstance(obj, list):
            next_obj = obj[int(parts[0])]
        elif isinstance(obj, dict):
            next_obj = obj[parts[0]]
        else:
            raise TypeError(f"Cannot extract `{parts[0]}` from `{type(obj).__name__}`")
        return extract(next_obj, parts[1:], is_list)

    try:
        return extract(document, PurePosixPath(path).parts if path else ())
    except (KeyError, IndexError, TypeError):
        if default is _MISSING:
            raise
        return default


def parse_label(value: str) -> tuple[str, str]:
    """Split a `KEY=VALUE` label argument unchanged. The value may be empty, the key may not."""
    key, sep, label_value = value.partition("=")
    if not sep or not key:
        raise ValueError(f"Label must have the form KEY=VALUE. label: `{value}`")
    return key, label_value


def label_selector(labels: Dict[str, str]) -> str:
    """Format labels as a Kubernetes equality-based selector. Requirements are ANDed."""
    return ",".join([f"{k}={v}" for k, v in labels.items()])


def merge_dicts(dicts: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Shallow merge, later dicts win."""
    merged: Dict[str, Any] = {}
    for d in dicts:
        merged.update(d)
    return merged
