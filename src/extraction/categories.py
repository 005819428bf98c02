"""Category and tag normalization"""
from typing import Any, Iterable, List, Optional

from .documents import DocumentNode
from .models import Category, Tag, TagRule


def normalize_category(value: Any, suffixes: Iterable[str] = (), link: str = "") -> Optional[Category]:
    """Canonical category from a resolved display value.

    Returns None when nothing was resolved.
    """
    if isinstance(value, Category):
        return value
    if isinstance(value, dict):
        link = value.get("link") or link
        value = value.get("name")
    if value is None:
        return None
    name = str(value).strip()
    if not name:
        return None
    for suffix in suffixes:
        if suffix and name.endswith(suffix):
            name = name[:-len(suffix)].strip()
    return Category(name=name, link=link or "")


def resolve_tags(row: DocumentNode, rules: Iterable[TagRule]) -> List[Tag]:
    """Tags whose locator finds at least one node in ``row``"""
    tags = []
    for rule in rules:
        if rule.selector and row.match(rule.selector):
            tags.append(Tag(name=rule.name, color=rule.display_color))
    return tags
