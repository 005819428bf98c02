"""Value filters and element handlers - named registry plus pipeline runner"""
import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Tuple
from urllib.parse import urljoin, urlparse

import pandas as pd

FILTERS: Dict[str, Tuple[Callable, bool]] = {}
ELEMENT_HANDLERS: Dict[str, Callable] = {}

SIZE_UNITS = {
    "B": 1,
    "K": 1024,
    "M": 1024 ** 2,
    "G": 1024 ** 3,
    "T": 1024 ** 4,
    "P": 1024 ** 5,
    "E": 1024 ** 6,
}

TIME_UNITS = {
    "sec": 1,
    "second": 1,
    "min": 60,
    "minute": 60,
    "hour": 3600,
    "hr": 3600,
    "day": 24 * 3600,
    "week": 7 * 24 * 3600,
    "month": 30 * 24 * 3600,
    "year": 365 * 24 * 3600,
}


def register_filter(name: str, needs_context: bool = False):
    """Register a value filter under ``name``.

    Context filters are called as ``func(value, context)``.
    """
    def decorator(func):
        FILTERS[name] = (func, needs_context)
        return func
    return decorator


def register_handler(name: str):
    """Register an element handler under ``name``."""
    def decorator(func):
        ELEMENT_HANDLERS[name] = func
        return func
    return decorator


def unknown_steps(steps: Iterable, registry: Dict[str, Any]) -> list:
    """Names in ``steps`` missing from ``registry``."""
    return [s for s in steps if not callable(s) and s not in registry]


def apply_filters(value: Any, steps: Iterable, context: Any = None) -> Any:
    """Run ``value`` through ``steps`` in order."""
    for step in steps:
        if callable(step):
            value = step(value)
            continue
        if step not in FILTERS:
            raise KeyError(f"Unknown filter: {step}")
        func, needs_context = FILTERS[step]
        value = func(value, context) if needs_context else func(value)
    return value


def apply_handlers(node: Any, steps: Iterable) -> Any:
    """Run element handlers; each one receives the previous one's output."""
    value = node
    for step in steps:
        if not callable(step):
            if step not in ELEMENT_HANDLERS:
                raise KeyError(f"Unknown element handler: {step}")
            step = ELEMENT_HANDLERS[step]
        value = step(value)
    return value


def to_absolute(base_url: str, link: Any) -> Any:
    """Resolve ``link`` against ``base_url`` unless it already has a scheme."""
    if not isinstance(link, str):
        return link
    link = link.strip()
    if not link:
        return link
    if urlparse(link).scheme or not base_url:
        return link
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, link)


@register_filter("trim")
def trim(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


@register_filter("lower")
def lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


@register_filter("upper")
def upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


@register_filter("remove_commas")
def remove_commas(value: Any) -> Any:
    return value.replace(",", "") if isinstance(value, str) else value


@register_filter("parse_int")
def parse_int(value: Any) -> int:
    """First integer in the text, thousands separators ignored; 0 if none"""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    match = re.search(r"-?\d+", str(value or "").replace(",", ""))
    return int(match.group(0)) if match else 0


@register_filter("parse_float")
def parse_float(value: Any) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    match = re.search(r"-?\d+(?:\.\d+)?", str(value or "").replace(",", ""))
    return float(match.group(0)) if match else 0.0


@register_filter("parse_size")
def parse_size(value: Any) -> int:
    """Convert a size string ("1.5 GiB", "700 MB") to bytes, 1024 based"""
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value or "").replace(",", "")
    match = re.search(r"(\d+(?:\.\d+)?)\s*([KMGTPE]?)i?B", text, re.IGNORECASE)
    if not match:
        return 0
    number, unit = float(match.group(1)), match.group(2).upper() or "B"
    return int(number * SIZE_UNITS[unit])


@register_filter("parse_time_ago")
def parse_time_ago(value: Any) -> int:
    """Convert a relative time ("3 hours ago", "1 day 2 hr") to epoch ms"""
    if not value:
        return 0
    seconds = 0
    for num, unit in re.findall(r"(\d+)\s*([a-zA-Z]+)", str(value)):
        unit = unit.lower().rstrip("s")
        for prefix, factor in TIME_UNITS.items():
            if unit.startswith(prefix):
                seconds += int(num) * factor
                break
    return int((datetime.now().timestamp() - seconds) * 1000)


@register_filter("parse_datetime")
def parse_datetime(value: Any) -> int:
    """Convert an absolute date string to epoch ms (naive values as UTC); 0 if unparseable"""
    if not value:
        return 0
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return 0
    return int(ts.timestamp() * 1000)


@register_filter("last_path_segment")
def last_path_segment(value: Any) -> str:
    match = re.search(r"([^/]+)/?$", str(value or "").split("?")[0])
    return match.group(1) if match else ""


@register_filter("magnet_from_onclick")
def magnet_from_onclick(value: Any) -> str:
    match = re.search(r"'(magnet:\?xt=.+?)'", str(value or ""))
    return match.group(1) if match else ""


@register_filter("absolute_url", needs_context=True)
def absolute_url(value: Any, context: Any) -> Any:
    return to_absolute(getattr(context, "base_url", ""), value)


@register_handler("title_or_text")
def title_or_text(node: Any) -> Any:
    return node.attr("title") or node.text()


@register_handler("inner_html")
def inner_html(node: Any) -> Any:
    if hasattr(node, "html"):
        return node.html()
    return node.text()
