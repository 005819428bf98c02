"""Schema dispatcher - pick the entry point, parse the document, guard the call.

Every public function here returns a diagnostic instead of raising for the
recoverable problems (login required, missing rows, failing fields).
Sites whose markup the declarative schema cannot express register an
override parser with ``register_override``; it receives the parsed root and
the context and must return an ``ExtractionResult``.
"""
import logging
import re
from typing import Any, Callable, Dict, Optional, Tuple

from .assembler import assemble, assemble_user_info, resolve_fields
from .documents import DocumentNode, document_text, parse_document
from .filters import to_absolute
from .models import ExtractionContext, ExtractionResult, SiteSchema

logger = logging.getLogger(__name__)

SEARCH = "search"
DETAIL = "detail"
USER_INFO = "user_info"

OverrideParser = Callable[[DocumentNode, ExtractionContext], ExtractionResult]

OVERRIDES: Dict[Tuple[str, str], OverrideParser] = {}


def register_override(site_name: str, entry: str = SEARCH):
    """Register a hand-written parser replacing the schema for one site entry"""
    def decorator(func: OverrideParser) -> OverrideParser:
        OVERRIDES[(site_name, entry)] = func
        return func
    return decorator


def detect_login_required(content: Any, patterns) -> bool:
    """Check raw document text against the site's login patterns"""
    if not patterns:
        return False
    text = document_text(content)
    for pattern in patterns:
        if re.search(pattern, text, re.IGNORECASE):
            logger.warning(f"Login pattern detected: {pattern}")
            return True
    return False


def _context(site: SiteSchema, context: Optional[ExtractionContext]) -> ExtractionContext:
    return context or ExtractionContext.for_site(site)


def _run(site: SiteSchema, entry: str, content: Any, response_type: str,
         context: ExtractionContext, extract: OverrideParser) -> ExtractionResult:
    try:
        if detect_login_required(content, site.login_patterns):
            return ExtractionResult([], f"[{site.name}] login required")
    except Exception as e:
        diagnostic = f"[{site.name}] login check failed: {e}"
        logger.error(diagnostic)
        return ExtractionResult([], diagnostic)

    try:
        root = parse_document(content, response_type)
    except Exception as e:
        diagnostic = f"[{site.name}] unreadable {response_type}: {e}"
        logger.error(diagnostic)
        return ExtractionResult([], diagnostic)

    override = OVERRIDES.get((site.name, entry))
    try:
        if override is not None:
            logger.info(f"[{site.name}] Using override parser for {entry}")
            return override(root, context)
        return extract(root, context)
    except Exception as e:
        diagnostic = f"[{site.name}] field extraction error: {e}"
        logger.error(diagnostic)
        return ExtractionResult([], diagnostic)


def get_search_result(content: Any, site: SiteSchema,
                      context: Optional[ExtractionContext] = None) -> ExtractionResult:
    """Torrents listed in a search result page"""
    context = _context(site, context)

    def extract(root, ctx):
        if site.search is None:
            return ExtractionResult([], f"[{site.name}] site has no search schema")
        return assemble(root, site.search, ctx)

    return _run(site, SEARCH, content, site.response_type, context, extract)


def get_detail(content: Any, site: SiteSchema,
               context: Optional[ExtractionContext] = None) -> ExtractionResult:
    """Detail page fields as a single dict record (e.g. the download link)"""
    context = _context(site, context)

    def extract(root, ctx):
        values = resolve_fields(root, site.detail, ctx)
        for name in ("url", "link"):
            if name in values:
                values[name] = to_absolute(ctx.base_url, values[name])
        return ExtractionResult([values])

    return _run(site, DETAIL, content, site.detail_type, context, extract)


def get_user_info(content: Any, site: SiteSchema,
                  context: Optional[ExtractionContext] = None) -> ExtractionResult:
    """UserInfo from a profile page"""
    context = _context(site, context)

    def extract(root, ctx):
        if not site.user_info:
            return ExtractionResult([], f"[{site.name}] site has no user info schema")
        return ExtractionResult([assemble_user_info(root, site.user_info, ctx)])

    return _run(site, USER_INFO, content, site.response_type, context, extract)


ENTRY_POINTS = {
    SEARCH: get_search_result,
    DETAIL: get_detail,
    USER_INFO: get_user_info,
}


def dispatch(entry: str, content: Any, site: SiteSchema,
             context: Optional[ExtractionContext] = None) -> ExtractionResult:
    """Run the ``entry`` extraction ("search", "detail", "user_info")"""
    if entry not in ENTRY_POINTS:
        raise ValueError(f"Unknown entry point: {entry}")
    return ENTRY_POINTS[entry](content, site, context)
