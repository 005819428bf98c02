"""Schema and record models for declarative extraction."""

from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from src.config.extractor_config import (
    BASE_TAG_COLORS, COLUMN_HEURISTICS, DEFAULT_CATEGORY_SUFFIXES, DEFAULT_TAG_COLOR
)

from .errors import SchemaError
from .filters import ELEMENT_HANDLERS, FILTERS, unknown_steps

# A filter or element handler: registered name or inline callable
Step = Any


def _as_tuple(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or callable(value):
        return (value,)
    return tuple(value)


def _read_only(value: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(value or {}))


def _check_names(steps: tuple, registry: Dict[str, Any], kind: str) -> None:
    missing = unknown_steps(steps, registry)
    if missing:
        raise SchemaError(f"Unknown {kind}: {', '.join(map(str, missing))}")


@dataclass(frozen=True)
class FieldSpec:
    """One declared extraction rule for one semantic field.

    Attributes:
        selectors: Candidate locators tried in order; ":self" is the node itself
        text: Literal used when no locator matches ("N/A" = not provided by the site)
        attr: Attribute to read instead of the text content
        data: Dataset key (HTML) or member (JSON) to read
        element_handlers: Steps replacing the default read, run on the matched node
        case: {locator: value} - first locator matching the matched node picks the value
        filters: Steps applied to the read value
        switch_filters: {locator index: steps}, replaces ``filters`` when declared
    """
    selectors: Tuple[str, ...] = ()
    text: Any = None
    attr: Optional[str] = None
    data: Optional[str] = None
    element_handlers: Tuple[Step, ...] = ()
    case: Optional[Mapping[str, Any]] = None
    filters: Tuple[Step, ...] = ()
    switch_filters: Optional[Mapping[int, Tuple[Step, ...]]] = None

    def __post_init__(self):
        object.__setattr__(self, "selectors", _as_tuple(self.selectors))
        object.__setattr__(self, "element_handlers", _as_tuple(self.element_handlers))
        object.__setattr__(self, "filters", _as_tuple(self.filters))
        if self.switch_filters is not None:
            object.__setattr__(self, "switch_filters", _read_only({
                int(k): _as_tuple(v) for k, v in self.switch_filters.items()
            }))
        if self.case is not None:
            object.__setattr__(self, "case", _read_only(self.case))
        if not self.selectors and self.text is None:
            raise SchemaError("FieldSpec needs at least one selector or a literal text")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FieldSpec":
        """Build from plain data (``selector``, ``filters``, ``switchFilters``, ...)."""
        switch = d.get("switch_filters", d.get("switchFilters"))
        # Positional lists map onto locator indexes
        if isinstance(switch, list):
            switch = {i: steps for i, steps in enumerate(switch)}
        spec = cls(
            selectors=d.get("selector", d.get("selectors")),
            text=d.get("text"),
            attr=d.get("attr"),
            data=d.get("data"),
            element_handlers=d.get("element_handlers", d.get("elementProcess")),
            case=d.get("case"),
            filters=d.get("filters"),
            switch_filters=switch,
        )
        _check_names(spec.filters, FILTERS, "filter")
        for steps in (spec.switch_filters or {}).values():
            _check_names(steps, FILTERS, "filter")
        _check_names(spec.element_handlers, ELEMENT_HANDLERS, "element handler")
        return spec


@dataclass(frozen=True)
class RowSpec:
    """Where the rows live and how they are grouped."""
    selector: str
    container: Optional[str] = None
    merge: int = 1
    filter: Optional[Callable[[list], list]] = None
    header: Optional[str] = None
    cells: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RowSpec":
        if not d.get("selector"):
            raise SchemaError("rows.selector is required")
        return cls(
            selector=d["selector"],
            container=d.get("container"),
            merge=int(d.get("merge") or 1),
            filter=d.get("filter"),
            header=d.get("header"),
            cells=d.get("cells"),
        )


@dataclass(frozen=True)
class TagRule:
    selector: str
    name: str
    color: Optional[str] = None

    @property
    def display_color(self) -> str:
        return self.color or BASE_TAG_COLORS.get(self.name, DEFAULT_TAG_COLOR)


def _field_map(d: Optional[Dict[str, Any]]) -> Dict[str, FieldSpec]:
    return {
        name: spec if isinstance(spec, FieldSpec) else FieldSpec.from_dict(spec)
        for name, spec in (d or {}).items()
    }


@dataclass(frozen=True)
class SearchSchema:
    """Declarative layout of a search result listing."""
    rows: RowSpec
    fields: Mapping[str, FieldSpec] = field(default_factory=dict)
    infer_columns: bool = False
    columns: Mapping[str, FieldSpec] = field(default_factory=dict)
    column_heuristics: Tuple[Tuple[str, str, bool], ...] = tuple(COLUMN_HEURISTICS)
    tags: Tuple[TagRule, ...] = ()
    category_suffixes: Tuple[str, ...] = tuple(DEFAULT_CATEGORY_SUFFIXES)
    category_link: Optional[FieldSpec] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", _read_only(self.fields))
        object.__setattr__(self, "columns", _read_only(self.columns))
        object.__setattr__(self, "tags", _as_tuple(self.tags))
        object.__setattr__(self, "category_suffixes", _as_tuple(self.category_suffixes))
        object.__setattr__(self, "column_heuristics", tuple(tuple(h) for h in self.column_heuristics))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SearchSchema":
        if "rows" not in d:
            raise SchemaError("search schema needs a 'rows' entry")
        extra = {}
        if "column_heuristics" in d:
            extra["column_heuristics"] = d["column_heuristics"]
        if "category_suffixes" in d:
            extra["category_suffixes"] = d["category_suffixes"]
        link = d.get("category_link")
        return cls(
            rows=d["rows"] if isinstance(d["rows"], RowSpec) else RowSpec.from_dict(d["rows"]),
            fields=_field_map(d.get("fields")),
            infer_columns=bool(d.get("infer_columns", False)),
            columns=_field_map(d.get("columns")),
            tags=[t if isinstance(t, TagRule) else TagRule(**t) for t in d.get("tags", [])],
            category_link=FieldSpec.from_dict(link) if isinstance(link, dict) else link,
            **extra,
        )


@dataclass(frozen=True)
class SiteSchema:
    """Everything the engine knows about one site."""
    name: str
    url: str
    response_type: str = "document"
    login_patterns: Tuple[str, ...] = ()
    search: Optional[SearchSchema] = None
    detail: Mapping[str, FieldSpec] = field(default_factory=dict)
    detail_type: str = "document"
    user_info: Mapping[str, FieldSpec] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "login_patterns", _as_tuple(self.login_patterns))
        object.__setattr__(self, "detail", _read_only(self.detail))
        object.__setattr__(self, "user_info", _read_only(self.user_info))
        if self.response_type not in ("document", "json") or self.detail_type not in ("document", "json"):
            raise SchemaError(f"[{self.name}] response type must be 'document' or 'json'")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SiteSchema":
        for key in ("name", "url"):
            if not d.get(key):
                raise SchemaError(f"site schema needs '{key}'")
        search = d.get("search")
        return cls(
            name=d["name"],
            url=d["url"],
            response_type=d.get("response_type", "document"),
            login_patterns=d.get("login_patterns", ()),
            search=SearchSchema.from_dict(search) if isinstance(search, dict) else search,
            detail=_field_map(d.get("detail")),
            detail_type=d.get("detail_type", "document"),
            user_info=_field_map(d.get("user_info")),
        )


@dataclass(frozen=True)
class ExtractionContext:
    """Per-call context: site identity, base address, echoable request params."""
    site_name: str
    base_url: str
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_site(cls, site: SiteSchema, **params) -> "ExtractionContext":
        return cls(site_name=site.name, base_url=site.url, params=params)


@dataclass
class Category:
    name: str
    link: str = ""


@dataclass
class Tag:
    name: str
    color: str


# Values used for fields a row does not resolve
TORRENT_DEFAULTS = {
    "id": "",
    "title": "",
    "sub_title": "",
    "url": "",
    "link": "",
    "time": 0,
    "size": 0,
    "author": "",
    "seeders": 0,
    "leechers": 0,
    "completed": 0,
    "comments": 0,
    "progress": None,
    "status": None,
}


@dataclass
class Torrent:
    """One search result. ``url`` is the detail page, ``link`` the download."""
    id: Any
    title: str
    url: str
    link: str
    sub_title: str = ""
    time: Any = 0
    size: Any = 0
    author: Any = ""
    category: Optional[Category] = None
    seeders: Any = 0
    leechers: Any = 0
    completed: Any = 0
    comments: Any = 0
    tags: List[Tag] = field(default_factory=list)
    progress: Any = None
    status: Any = None
    site: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


USER_INFO_DEFAULTS = {
    "id": "",
    "name": "",
    "level_name": "",
    "uploaded": 0,
    "downloaded": 0,
    "ratio": None,
    "seeding": 0,
    "seeding_size": 0,
    "leeching": 0,
    "bonus": 0,
    "message_count": 0,
    "invites": 0,
    "join_time": 0,
    "avatar": "",
}


@dataclass
class UserInfo:
    """Account stats from a user profile page."""
    id: Any
    name: str
    uploaded: Any = 0
    downloaded: Any = 0
    level_name: str = ""
    ratio: Optional[float] = None
    seeding: Any = 0
    seeding_size: Any = 0
    leeching: Any = 0
    bonus: Any = 0
    message_count: Any = 0
    invites: Any = 0
    join_time: Any = 0
    avatar: str = ""
    update_at: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExtractionResult:
    """Records in document order plus the last recoverable problem, if any."""
    records: List[Any] = field(default_factory=list)
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None
