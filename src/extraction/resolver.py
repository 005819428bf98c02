"""Field resolver - resolve one FieldSpec against one document node"""
import logging
from typing import Any, Optional, Tuple

from src.config.extractor_config import NOT_APPLICABLE

from .documents import DocumentNode
from .errors import FieldResolutionError
from .filters import apply_filters, apply_handlers
from .models import ExtractionContext, FieldSpec

logger = logging.getLogger(__name__)


def find_first(node: DocumentNode, spec: FieldSpec) -> Tuple[Optional[DocumentNode], int]:
    """First node matched by the candidate locators and the index of the locator"""
    for index, locator in enumerate(spec.selectors):
        matches = node.match(locator)
        if matches:
            return matches[0], index
    return None, -1


def read_node(node: DocumentNode, spec: FieldSpec) -> Any:
    """Default read: attribute, else dataset/member key, else trimmed text"""
    if spec.attr:
        return node.attr(spec.attr)
    if spec.data:
        return node.sub_key(spec.data)
    return node.text()


def _read_case(node: DocumentNode, case: dict) -> Any:
    for locator, value in case.items():
        if node.is_match(locator) or node.match(locator):
            return value
    return ""


def resolve_field(node: DocumentNode, spec: FieldSpec,
                  context: Optional[ExtractionContext] = None, field: str = "") -> Any:
    """Resolve ``spec`` against ``node``.

    Raises FieldResolutionError when a locator, handler or filter fails.
    """
    try:
        matched, index = find_first(node, spec)

        if matched is None:
            value = spec.text if spec.text is not None else ""
        elif spec.element_handlers:
            value = apply_handlers(matched, spec.element_handlers)
        elif spec.case:
            value = _read_case(matched, spec.case)
        else:
            value = read_node(matched, spec)

        # Not applicable stays as is
        if isinstance(value, str) and value == NOT_APPLICABLE:
            return value

        if spec.switch_filters is not None:
            steps = spec.switch_filters.get(index, ())
        else:
            steps = spec.filters
        return apply_filters(value, steps, context)

    except FieldResolutionError:
        raise
    except Exception as e:
        logger.debug(f"Field {field or '<field>'} failed on {node!r}: {e}")
        raise FieldResolutionError(field, e) from e
