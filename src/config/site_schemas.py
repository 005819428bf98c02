"""Built-in site schemas - Declarative selectors with fallbacks per site"""
from src.extraction.models import FieldSpec, RowSpec, SearchSchema, SiteSchema, TagRule

# Public DHT search engine, one div.media per result
BTDB = SiteSchema(
    name="BTDB",
    url="https://btdb.eu/",
    search=SearchSchema(
        rows=RowSpec(selector="div.media"),
        fields={
            "id": FieldSpec(selectors="h2.item-title a", attr="href", filters=["last_path_segment"]),
            "title": FieldSpec(selectors="h2.item-title a", attr="title"),
            "url": FieldSpec(selectors="h2.item-title a", attr="href"),
            "link": FieldSpec(
                selectors="a[onclick*='magnet:?xt=']", attr="onclick", filters=["magnet_from_onclick"]
            ),
            "size": FieldSpec(selectors="small:nth-of-type(1) strong", filters=["parse_size"]),
            "seeders": FieldSpec(selectors="small:nth-of-type(3) strong", filters=["parse_int"]),
            "leechers": FieldSpec(selectors="small:nth-of-type(4) strong", filters=["parse_int"]),
            "category": FieldSpec(text="Other"),
        },
    ),
)

# Private tracker with a sortable table; columns are found from header links
AVISTAZ = SiteSchema(
    name="AvistaZ",
    url="https://avistaz.to/",
    login_patterns=[r"/auth/login"],
    search=SearchSchema(
        rows=RowSpec(
            container="div.table-responsive > table",
            selector=":scope > tbody > tr",
            header=":scope > thead > tr > th",
        ),
        infer_columns=True,
        fields={
            "id": FieldSpec(
                selectors="a.torrent-filename, a.torrent-link", attr="href", filters=["last_path_segment"]
            ),
            "title": FieldSpec(selectors="a.torrent-filename, a.torrent-link"),
            "url": FieldSpec(selectors="a.torrent-filename, a.torrent-link", attr="href"),
            "link": FieldSpec(selectors="a[href*='/download/torrent/']", attr="href"),
        },
        columns={
            "time": FieldSpec(selectors=["span[title]", ":self"], element_handlers=["title_or_text"]),
            "size": FieldSpec(selectors=":self", filters=["parse_size"]),
            "seeders": FieldSpec(selectors=":self", filters=["parse_int"]),
            "leechers": FieldSpec(selectors=":self", filters=["parse_int"]),
            "completed": FieldSpec(selectors=":self", filters=["parse_int"]),
            "comments": FieldSpec(selectors=":self", filters=["parse_int"]),
            "category": FieldSpec(selectors="i", attr="title"),
        },
        tags=[
            TagRule(selector="i.fa-star[title*='Free']", name="Free"),
            TagRule(selector="i.fa-star[title*='Double']", name="2xFree"),
        ],
        category_suffixes=[" Torrent"],
    ),
)

SITES = {site.name: site for site in (BTDB, AVISTAZ)}
