"""Unit tests for the record assembler."""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from bs4 import BeautifulSoup

from src.extraction.assembler import assemble, assemble_user_info, merge_rows
from src.extraction.documents import HtmlNode, JsonNode
from src.extraction.models import (
    Category, ExtractionContext, FieldSpec, RowSpec, SearchSchema, Tag, TagRule
)

CONTEXT = ExtractionContext(site_name="Example", base_url="https://example.org/")


def listing(count, bad=None):
    """Document with ``count`` div.item rows; row ``bad`` carries a non-numeric seeder count."""
    rows = "".join(
        f'<div class="item"><a class="t" href="/details/{i}">Item {i}</a>'
        f'<span class="s">{"many" if i == bad else i}</span></div>'
        for i in range(count)
    )
    return HtmlNode(BeautifulSoup(f'<div id="list">{rows}</div>', 'html.parser'))


def item_schema(extra_fields=None, **kwargs):
    rows = kwargs.pop('rows', RowSpec(selector="div.item"))
    fields = {
        "id": FieldSpec("a.t", attr="href", filters=["last_path_segment"]),
        "title": FieldSpec("a.t"),
        "url": FieldSpec("a.t", attr="href"),
        "seeders": FieldSpec("span.s", filters=[lambda v: int(v)]),
    }
    fields.update(extra_fields or {})
    return SearchSchema(rows=rows, fields=fields, **kwargs)


class TestAssemble:
    """Tests for assemble on generic HTML listings."""

    def test_one_record_per_row(self):
        result = assemble(listing(10), item_schema(), CONTEXT)
        assert len(result.records) == 10
        assert result.diagnostic is None

    def test_document_order(self):
        result = assemble(listing(5), item_schema(), CONTEXT)
        assert [t.title for t in result.records] == [f"Item {i}" for i in range(5)]

    def test_fields_resolved(self):
        torrent = assemble(listing(3), item_schema(), CONTEXT).records[2]
        assert torrent.id == "2"
        assert torrent.seeders == 2
        assert torrent.site == "Example"

    def test_zero_rows_gives_diagnostic(self):
        """Should return no records and a diagnostic when nothing matches."""
        result = assemble(listing(0), item_schema(), CONTEXT)
        assert result.records == []
        assert result.diagnostic
        assert "Example" in result.diagnostic

    def test_missing_container_gives_diagnostic(self):
        rows = RowSpec(selector="div.item", container="table#torrents")
        result = assemble(listing(3), item_schema(rows=rows), CONTEXT)
        assert result.records == []
        assert "container" in result.diagnostic

    def test_invalid_row_locator_gives_diagnostic(self):
        result = assemble(listing(3), item_schema(rows=RowSpec(selector="div[[[")), CONTEXT)
        assert result.records == []
        assert result.diagnostic

    def test_malformed_row_is_skipped(self):
        """Should drop only the failing row and keep a diagnostic."""
        result = assemble(listing(20, bad=7), item_schema(), CONTEXT)
        assert len(result.records) == 19
        assert "7" not in [t.id for t in result.records]
        assert "field extraction error" in result.diagnostic

    def test_merge_two_rows(self):
        rows = RowSpec(selector="div.item", merge=2)
        result = assemble(listing(10), item_schema(rows=rows), CONTEXT)
        assert len(result.records) == 5
        assert [t.title for t in result.records] == ["Item 0", "Item 2", "Item 4", "Item 6", "Item 8"]

    def test_merge_one_keeps_rows(self):
        rows = RowSpec(selector="div.item", merge=1)
        assert len(assemble(listing(10), item_schema(rows=rows), CONTEXT).records) == 10

    def test_row_filter(self):
        rows = RowSpec(selector="div.item", filter=lambda found: found[:3])
        assert len(assemble(listing(10), item_schema(rows=rows), CONTEXT).records) == 3

    def test_relative_links_made_absolute(self):
        torrent = assemble(listing(4), item_schema(), CONTEXT).records[3]
        assert torrent.url == "https://example.org/details/3"

    def test_absolute_links_unchanged(self):
        schema = item_schema({"link": FieldSpec(text="https://cdn.example.org/x")})
        torrent = assemble(listing(1), schema, CONTEXT).records[0]
        assert torrent.link == "https://cdn.example.org/x"

    def test_unresolved_fields_default(self):
        torrent = assemble(listing(1), item_schema(), CONTEXT).records[0]
        assert torrent.link == ""
        assert torrent.size == 0
        assert torrent.leechers == 0
        assert torrent.author == ""
        assert torrent.category is None
        assert torrent.tags == []

    def test_tags(self):
        html = '<div class="item"><a class="t" href="/d/1">A</a><span class="s">1</span><b class="free"></b></div>'
        root = HtmlNode(BeautifulSoup(html, 'html.parser'))
        schema = item_schema(tags=[TagRule("b.free", "Free", "blue"), TagRule("b.hot", "Hot", "red")])
        torrent = assemble(root, schema, CONTEXT).records[0]
        assert torrent.tags == [Tag("Free", "blue")]

    def test_category_suffix_stripped(self):
        schema = item_schema({"category": FieldSpec(text="Movies Torrent")}, category_suffixes=[" Torrent"])
        torrent = assemble(listing(1), schema, CONTEXT).records[0]
        assert torrent.category == Category("Movies", "")

    def test_category_link(self):
        schema = item_schema({"category": FieldSpec(text="Music")}, category_link=FieldSpec(text="/browse?cat=1"))
        torrent = assemble(listing(1), schema, CONTEXT).records[0]
        assert torrent.category == Category("Music", "/browse?cat=1")

    def test_unknown_fields_kept_as_extra(self):
        schema = item_schema({"free_until": FieldSpec(text="tomorrow")})
        torrent = assemble(listing(1), schema, CONTEXT).records[0]
        assert torrent.extra == {"free_until": "tomorrow"}


TABLE = """
<table id="torrents">
  <thead><tr>
    <th class="torrents-icon">Cat</th>
    <th>Name</th>
    <th><a href="?order=size">Size</a></th>
    <th><a href="?order=seed">S</a></th>
    <th>Uploader</th>
  </tr></thead>
  <tbody>
    <tr>
      <td><i title="Movies Torrent"></i></td>
      <td><a class="t" href="/details/1">First</a></td>
      <td>1 GiB</td>
      <td>10</td>
      <td>alice</td>
    </tr>
    <tr>
      <td><i title="Music Torrent"></i></td>
      <td><a class="t" href="/details/2">Second</a></td>
      <td>2 GiB</td>
      <td>20</td>
      <td>bob</td>
    </tr>
  </tbody>
</table>
"""


def table_schema(extra_fields=None, **rows_kwargs):
    rows = dict(container="table#torrents", selector=":scope > tbody > tr", header=":scope > thead > tr > th")
    rows.update(rows_kwargs)
    fields = {
        "id": FieldSpec("a.t", attr="href", filters=["last_path_segment"]),
        "title": FieldSpec("a.t"),
        "url": FieldSpec("a.t", attr="href"),
    }
    fields.update(extra_fields or {})
    return SearchSchema(
        rows=RowSpec(**rows),
        infer_columns=True,
        fields=fields,
        columns={
            "size": FieldSpec(":self", filters=["parse_size"]),
            "seeders": FieldSpec(":self", filters=["parse_int"]),
            "category": FieldSpec("i", attr="title"),
        },
    )


class TestAssembleTable:
    """Tests for assemble with column inference."""

    def setup_method(self):
        self.root = HtmlNode(BeautifulSoup(TABLE, 'html.parser'))

    def test_columns_inferred(self):
        result = assemble(self.root, table_schema(), CONTEXT)
        first, second = result.records
        assert first.size == 1024 ** 3
        assert first.seeders == 10
        assert first.author == "alice"
        assert first.category == Category("Movies", "")
        assert second.title == "Second"
        assert second.seeders == 20

    def test_unmapped_columns_default(self):
        first = assemble(self.root, table_schema(), CONTEXT).records[0]
        assert first.leechers == 0
        assert first.time == 0
        assert first.comments == 0

    def test_first_row_is_header_without_header_locator(self):
        """Should use and drop the first row when no header is declared."""
        html = TABLE.replace("<thead>", "").replace("</thead>", "").replace("<tbody>", "").replace("</tbody>", "")
        root = HtmlNode(BeautifulSoup(html, 'html.parser'))
        schema = table_schema(selector=":scope > tr", header=None)
        result = assemble(root, schema, CONTEXT)
        assert [t.title for t in result.records] == ["First", "Second"]
        assert result.records[1].author == "bob"

    def test_explicit_field_overrides_column(self):
        schema = table_schema({"author": FieldSpec(text="anonymous")})
        first = assemble(self.root, schema, CONTEXT).records[0]
        assert first.author == "anonymous"

    def test_short_rows_default_missing_cells(self):
        html = TABLE.replace("<td>alice</td>", "")
        first = assemble(HtmlNode(BeautifulSoup(html, 'html.parser')), table_schema(), CONTEXT).records[0]
        assert first.author == ""

    def test_merged_rows_keep_inferred_columns(self):
        """Should index header positions into the first row of each merged record."""
        html = TABLE.replace("</tr>\n    <tr>", "</tr>\n    <tr><td colspan=\"5\">Freeleech until Friday</td></tr>\n    <tr>")
        html = html.replace("</tr>\n  </tbody>", "</tr>\n    <tr><td colspan=\"5\">No notes</td></tr>\n  </tbody>")
        root = HtmlNode(BeautifulSoup(html, 'html.parser'))
        result = assemble(root, table_schema(merge=2), CONTEXT)
        assert result.diagnostic is None
        assert [t.title for t in result.records] == ["First", "Second"]
        assert [t.seeders for t in result.records] == [10, 20]
        assert [t.size for t in result.records] == [1024 ** 3, 2 * 1024 ** 3]
        assert result.records[1].author == "bob"
        assert result.records[0].category == Category("Movies", "")


class TestAssembleJson:
    """Tests for assemble on JSON payloads."""

    def setup_method(self):
        self.root = JsonNode({"data": {"torrents": [
            {"id": 1, "name": "One", "url": "/t/1", "seeders": 5},
            {"id": 2, "name": "Two", "url": "/t/2", "seeders": 0},
        ]}})
        self.schema = SearchSchema(
            rows=RowSpec(selector="data.torrents"),
            fields={
                "id": FieldSpec("id"),
                "title": FieldSpec("name"),
                "url": FieldSpec("url"),
                "seeders": FieldSpec("seeders"),
                "category": FieldSpec(text="Other"),
            },
        )

    def test_rows_from_list(self):
        result = assemble(self.root, self.schema, CONTEXT)
        assert [t.id for t in result.records] == [1, 2]
        assert result.records[0].seeders == 5
        assert result.records[0].url == "https://example.org/t/1"
        assert result.records[1].category == Category("Other", "")

    def test_merge_ignored(self):
        schema = SearchSchema(rows=RowSpec(selector="data.torrents", merge=2), fields=self.schema.fields)
        assert len(assemble(self.root, schema, CONTEXT).records) == 2

    def test_missing_list(self):
        schema = SearchSchema(rows=RowSpec(selector="data.nothing"), fields=self.schema.fields)
        result = assemble(self.root, schema, CONTEXT)
        assert result.records == []
        assert result.diagnostic


class TestMergeRows:
    """Tests for merge_rows."""

    def test_drops_incomplete_group(self):
        rows = listing(5).match("div.item")
        assert len(merge_rows(rows, 2)) == 2

    def test_source_untouched(self):
        root = listing(4)
        merge_rows(root.match("div.item"), 2)
        assert len(root.match("#list > div.item")) == 4


class TestAssembleUserInfo:
    """Tests for assemble_user_info."""

    def setup_method(self):
        self.root = JsonNode({"user": {"id": 7, "username": "alice", "up": 2048, "down": 1024, "bonus": "1,500"}})
        self.fields = {
            "id": FieldSpec("user.id"),
            "name": FieldSpec("user.username"),
            "uploaded": FieldSpec("user.up"),
            "downloaded": FieldSpec("user.down"),
            "bonus": FieldSpec("user.bonus", filters=["parse_int"]),
        }

    def test_fields(self):
        info = assemble_user_info(self.root, self.fields, CONTEXT)
        assert info.id == 7
        assert info.name == "alice"
        assert info.bonus == 1500
        assert info.seeding == 0

    def test_ratio_derived(self):
        assert assemble_user_info(self.root, self.fields, CONTEXT).ratio == 2.0

    def test_ratio_not_applicable_kept(self):
        fields = dict(self.fields, ratio=FieldSpec(text="N/A"))
        assert assemble_user_info(self.root, fields, CONTEXT).ratio == "N/A"

    def test_no_downloads_leaves_ratio_empty(self):
        root = JsonNode({"user": {"id": 7, "username": "alice", "up": 10, "down": 0}})
        assert assemble_user_info(root, self.fields, CONTEXT).ratio is None

    def test_update_stamp(self):
        assert assemble_user_info(self.root, self.fields, CONTEXT).update_at > 0
