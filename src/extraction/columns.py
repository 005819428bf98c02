"""Tabular column mapper - infer field -> column from header cells"""
import logging
from typing import Dict, Iterable, List, Tuple

from src.config.extractor_config import COLUMN_FIELDS, COLUMN_HEURISTICS, UNMAPPED

from .documents import DocumentNode

logger = logging.getLogger(__name__)

ColumnIndex = Dict[str, int]


def _cell_matches(cell: DocumentNode, locator: str, on_self: bool) -> bool:
    if on_self:
        return cell.is_match(locator)
    return bool(cell.match(locator))


def build_column_index(header_cells: List[DocumentNode],
                       heuristics: Iterable[Tuple[str, str, bool]] = COLUMN_HEURISTICS) -> ColumnIndex:
    """Map column fields to header positions.

    The last column defaults to the author and the first to the category.
    A column claimed by a heuristic drops the author default when it points
    at that column. The category default only moves on a category match,
    so a first column claimed by another field keeps it.
    """
    heuristics = list(heuristics)
    index = {name: UNMAPPED for name in COLUMN_FIELDS}
    for name, _, _ in heuristics:
        index.setdefault(name, UNMAPPED)

    index["author"] = len(header_cells) - 1
    index["category"] = 0 if header_cells else UNMAPPED

    for position, cell in enumerate(header_cells):
        for name, locator, on_self in heuristics:
            if not _cell_matches(cell, locator, on_self):
                continue
            index[name] = position
            if name != "author" and index["author"] == position:
                index["author"] = UNMAPPED
            break

    logger.debug(f"Column index: {index}")
    return index


def cell_at(cells: List[DocumentNode], position: int):
    """Cell at ``position`` or None when unmapped / out of range"""
    if position == UNMAPPED or position >= len(cells):
        return None
    return cells[position]
