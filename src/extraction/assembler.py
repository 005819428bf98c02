"""Record assembler - rows in, Torrent / UserInfo records out"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from src.config.extractor_config import (
    DEFAULT_CELL_LOCATOR, DEFAULT_HEADER_CELL_LOCATOR, NOT_APPLICABLE, SELF_LOCATOR
)

from .categories import normalize_category, resolve_tags
from .columns import ColumnIndex, build_column_index, cell_at
from .documents import DocumentNode, HtmlNode
from .filters import to_absolute
from .models import (
    TORRENT_DEFAULTS, USER_INFO_DEFAULTS, ExtractionContext, ExtractionResult,
    FieldSpec, SearchSchema, Torrent, UserInfo
)
from .resolver import resolve_field

logger = logging.getLogger(__name__)

# Plain text of the inferred cell
CELL_TEXT = FieldSpec(selectors=[SELF_LOCATOR])

LINK_FIELDS = ("url", "link")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _with_defaults(values: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Pop known fields out of ``values``, filling unresolved ones with defaults"""
    out = {}
    for name, default in defaults.items():
        value = values.pop(name, None)
        out[name] = default if _is_empty(value) else value
    return out


def resolve_fields(node: DocumentNode, fields: Dict[str, FieldSpec],
                   context: Optional[ExtractionContext] = None) -> Dict[str, Any]:
    """Resolve every field of ``fields`` against ``node``"""
    return {name: resolve_field(node, spec, context, name) for name, spec in fields.items()}


def merge_rows(rows: List[DocumentNode], size: int) -> List[DocumentNode]:
    """Group consecutive rows into records of ``size`` rows.

    A trailing incomplete group is dropped. Only HTML rows can be merged.
    """
    if size <= 1:
        return rows
    if not all(isinstance(r, HtmlNode) for r in rows):
        logger.warning("Row merge is only defined for HTML documents, ignoring merge")
        return rows
    leftover = len(rows) % size
    if leftover:
        logger.debug(f"Dropping {leftover} trailing rows that do not fill a merge group of {size}")
    return [HtmlNode.merge(rows[i:i + size]) for i in range(0, len(rows) - leftover, size)]


def _header_cells(container: DocumentNode, rows: List[DocumentNode],
                  header_locator: Optional[str]) -> Tuple[List[DocumentNode], List[DocumentNode]]:
    """Header cells and the remaining data rows"""
    if header_locator:
        header = container.match(header_locator)
        if header:
            return header, rows
    return rows[0].match(DEFAULT_HEADER_CELL_LOCATOR), rows[1:]


def assemble_torrent(row: DocumentNode, schema: SearchSchema, context: ExtractionContext,
                     column_index: Optional[ColumnIndex] = None) -> Torrent:
    """Build one Torrent from a row; raises FieldResolutionError on a failing field"""
    values: Dict[str, Any] = {}

    if column_index is not None:
        # Header positions index the cells of the record's first physical row
        cells = row.members()[0].match(schema.rows.cells or DEFAULT_CELL_LOCATOR)
        for name, position in column_index.items():
            # Explicit row-level specs win over inferred columns
            if name in schema.fields:
                continue
            cell = cell_at(cells, position)
            if cell is not None:
                values[name] = resolve_field(cell, schema.columns.get(name, CELL_TEXT), context, name)

    values.update(resolve_fields(row, schema.fields, context))

    link = ""
    if schema.category_link is not None:
        link = resolve_field(row, schema.category_link, context, "category_link")
    category = normalize_category(values.pop("category", None), schema.category_suffixes, link)

    data = _with_defaults(values, TORRENT_DEFAULTS)
    for name in LINK_FIELDS:
        if data[name] != NOT_APPLICABLE:
            data[name] = to_absolute(context.base_url, data[name])

    return Torrent(
        category=category,
        tags=resolve_tags(row, schema.tags),
        site=context.site_name,
        extra=values,
        **data,
    )


def assemble(root: DocumentNode, schema: SearchSchema, context: ExtractionContext) -> ExtractionResult:
    """Extract every torrent of a search result document.

    Never raises: a missing container or empty row set and failing rows are
    reported through ``ExtractionResult.diagnostic``.
    """
    site = context.site_name
    rows_spec = schema.rows

    try:
        container = root.first(rows_spec.container) if rows_spec.container else root
        if container is None:
            diagnostic = f"[{site}] row container not found ({rows_spec.container})"
            logger.warning(diagnostic)
            return ExtractionResult([], diagnostic)

        rows = container.match_rows(rows_spec.selector)
        if rows_spec.filter is not None:
            rows = list(rows_spec.filter(rows))
    except Exception as e:
        diagnostic = f"[{site}] failed to locate rows: {e}"
        logger.error(diagnostic)
        return ExtractionResult([], diagnostic)

    if not rows:
        diagnostic = f"[{site}] no rows located, or no matching torrents"
        logger.warning(diagnostic)
        return ExtractionResult([], diagnostic)

    column_index = None
    if schema.infer_columns:
        header, rows = _header_cells(container, rows, rows_spec.header)
        column_index = build_column_index(header, schema.column_heuristics)

    rows = merge_rows(rows, rows_spec.merge)

    records: List[Torrent] = []
    diagnostic = None
    for position, row in enumerate(rows):
        try:
            records.append(assemble_torrent(row, schema, context, column_index))
        except Exception as e:
            diagnostic = f"[{site}] field extraction error: {e}"
            logger.warning(f"[{site}] Skipping row {position}: {e}")

    logger.info(f"[{site}] Parsed {len(records)} torrents from {len(rows)} rows")
    return ExtractionResult(records, diagnostic)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return None


def assemble_user_info(root: DocumentNode, fields: Dict[str, FieldSpec],
                       context: Optional[ExtractionContext] = None) -> UserInfo:
    """Build UserInfo from a profile document; ratio is derived when missing"""
    values = resolve_fields(root, fields, context)
    data = _with_defaults(values, USER_INFO_DEFAULTS)

    if _is_empty(data["ratio"]):
        uploaded, downloaded = _as_number(data["uploaded"]), _as_number(data["downloaded"])
        if uploaded is not None and downloaded:
            data["ratio"] = uploaded / downloaded

    return UserInfo(
        update_at=int(datetime.now().timestamp() * 1000),
        extra=values,
        **data,
    )
