"""Locator-queryable document nodes for HTML and JSON payloads.

The engine only talks to ``DocumentNode``. ``HtmlNode`` delegates locators
to BeautifulSoup CSS selection, ``JsonNode`` reads dot paths such as
``data.torrents.0.name`` (numeric segments index lists). Both understand
the ``:self`` locator.
"""
import copy
import json
import re
from typing import Any, List, Optional

from bs4 import BeautifulSoup, Tag

from src.config.extractor_config import HTML_PARSER, SELF_LOCATOR


class DocumentNode:
    """Node of a parsed document queryable by locator strings."""

    raw: Any = None

    def match(self, locator: str) -> List["DocumentNode"]:
        raise NotImplementedError

    def is_match(self, locator: str) -> bool:
        """Whether the node itself satisfies ``locator``."""
        raise NotImplementedError

    def text(self) -> Any:
        raise NotImplementedError

    def attr(self, name: str) -> Any:
        raise NotImplementedError

    def sub_key(self, name: str) -> Any:
        raise NotImplementedError

    def match_rows(self, locator: str) -> List["DocumentNode"]:
        """Row candidates for ``locator``; same as ``match`` unless overridden."""
        return self.match(locator)

    def first(self, locator: str) -> Optional["DocumentNode"]:
        nodes = self.match(locator)
        return nodes[0] if nodes else None

    def members(self) -> List["DocumentNode"]:
        """Physical rows behind a record node; a plain node is its own only member."""
        return [self]


def _dataset_attr(name: str) -> str:
    """Map a dataset key (``torrentId``) to its attribute (``data-torrent-id``)."""
    if name.startswith("data-"):
        return name
    return "data-" + re.sub(r"([A-Z])", lambda m: "-" + m.group(1).lower(), name)


class HtmlNode(DocumentNode):
    """BeautifulSoup tag (or whole soup) behind the node interface."""

    def __init__(self, tag: Tag, members: Optional[List["HtmlNode"]] = None):
        self.raw = tag
        self._members = members

    def match(self, locator: str) -> List[DocumentNode]:
        if locator == SELF_LOCATOR:
            return [self]
        return [HtmlNode(t) for t in self.raw.select(locator)]

    def is_match(self, locator: str) -> bool:
        if locator == SELF_LOCATOR:
            return True
        if isinstance(self.raw, BeautifulSoup):
            return False
        return bool(self.raw.css.match(locator))

    def text(self) -> str:
        return self.raw.get_text().strip()

    def attr(self, name: str) -> str:
        value = self.raw.get(name)
        if value is None:
            return ""
        # Multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return value

    def sub_key(self, name: str) -> str:
        return self.attr(_dataset_attr(name))

    def html(self) -> str:
        return self.raw.decode_contents()

    @classmethod
    def merge(cls, nodes: List["HtmlNode"]) -> "HtmlNode":
        """Combine rows into one detached node built from copies."""
        soup = BeautifulSoup("<div></div>", HTML_PARSER)
        wrapper = soup.div
        members = []
        for node in nodes:
            row = copy.copy(node.raw)
            wrapper.append(row)
            members.append(cls(row))
        return cls(wrapper, members)

    def members(self) -> List["HtmlNode"]:
        return list(self._members) if self._members else [self]

    def __repr__(self):
        return f"HtmlNode(<{getattr(self.raw, 'name', '?')}>)"


_MISSING = object()


def _walk(value: Any, path: str) -> Any:
    for segment in path.split("."):
        if segment == "":
            continue
        if isinstance(value, dict):
            value = value.get(segment, _MISSING)
        elif isinstance(value, list) and segment.lstrip("-").isdigit():
            index = int(segment)
            value = value[index] if -len(value) <= index < len(value) else _MISSING
        else:
            return _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def _scalar(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


class JsonNode(DocumentNode):
    """Decoded JSON value behind the node interface.

    A path resolving to a list matches each of its items, so row locators
    point at the list itself. Missing paths and ``null`` match nothing.
    """

    def __init__(self, value: Any):
        self.raw = value

    def match(self, locator: str) -> List[DocumentNode]:
        if locator == SELF_LOCATOR:
            return [self]
        value = _walk(self.raw, locator)
        if value is _MISSING or value is None:
            return []
        if isinstance(value, list):
            return [JsonNode(item) for item in value]
        return [JsonNode(value)]

    def match_rows(self, locator: str) -> List[DocumentNode]:
        # A top-level list payload is itself the row set
        if locator == SELF_LOCATOR and isinstance(self.raw, list):
            return [JsonNode(item) for item in self.raw]
        return self.match(locator)

    def is_match(self, locator: str) -> bool:
        return bool(self.match(locator))

    def text(self) -> Any:
        return _scalar(self.raw)

    def attr(self, name: str) -> Any:
        if not isinstance(self.raw, dict) or name not in self.raw:
            return ""
        return _scalar(self.raw[name])

    def sub_key(self, name: str) -> Any:
        return self.attr(name)

    def __repr__(self):
        return f"JsonNode({type(self.raw).__name__})"


def parse_document(content: Any, response_type: str = "document") -> DocumentNode:
    """Wrap raw text or an already-parsed document into a node."""
    if isinstance(content, DocumentNode):
        return content
    if isinstance(content, Tag):
        return HtmlNode(content)
    if response_type == "json":
        if isinstance(content, (str, bytes)):
            content = json.loads(content)
        return JsonNode(content)
    return HtmlNode(BeautifulSoup(content, HTML_PARSER))


def document_text(content: Any) -> str:
    """Raw text used for login detection."""
    if isinstance(content, (bytes, bytearray)):
        return content.decode("utf-8", errors="replace")
    if isinstance(content, str):
        return content
    if isinstance(content, DocumentNode):
        content = content.raw
    if isinstance(content, Tag):
        return str(content)
    return json.dumps(content, ensure_ascii=False)
