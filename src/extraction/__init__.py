"""Declarative extraction module exports"""
from .assembler import assemble, assemble_torrent, assemble_user_info, merge_rows, resolve_fields
from .categories import normalize_category, resolve_tags
from .columns import build_column_index
from .dispatcher import (
    dispatch, get_search_result, get_detail, get_user_info, register_override, detect_login_required
)
from .documents import DocumentNode, HtmlNode, JsonNode, parse_document
from .errors import ExtractionError, FieldResolutionError, SchemaError
from .export import torrents_to_dataframe
from .filters import apply_filters, register_filter, register_handler
from .models import (
    Category, ExtractionContext, ExtractionResult, FieldSpec, RowSpec,
    SearchSchema, SiteSchema, Tag, TagRule, Torrent, UserInfo
)
from .resolver import resolve_field

__all__ = [
    'assemble', 'assemble_torrent', 'assemble_user_info', 'merge_rows', 'resolve_fields',
    'normalize_category', 'resolve_tags', 'build_column_index',
    'dispatch', 'get_search_result', 'get_detail', 'get_user_info',
    'register_override', 'detect_login_required',
    'DocumentNode', 'HtmlNode', 'JsonNode', 'parse_document',
    'ExtractionError', 'FieldResolutionError', 'SchemaError',
    'torrents_to_dataframe', 'apply_filters', 'register_filter', 'register_handler',
    'Category', 'ExtractionContext', 'ExtractionResult', 'FieldSpec', 'RowSpec',
    'SearchSchema', 'SiteSchema', 'Tag', 'TagRule', 'Torrent', 'UserInfo',
    'resolve_field',
]
