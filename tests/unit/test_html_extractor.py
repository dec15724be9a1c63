"""
Unit tests for embedded structured data extraction from HTML.
"""

import json

from dpp_graph.services.resolution import extract_embedded_data


def _page(head: str = "", body: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


def _script(data, attrs: str = 'type="application/ld+json"') -> str:
    return f"<script {attrs}>{json.dumps(data)}</script>"


class TestJsonLdScripts:
    def test_single_block_returns_object(self):
        html = _page(head=_script({"@type": "Product", "name": "Drill"}))
        result = extract_embedded_data(html)
        assert result.method == "html_script_tag"
        assert result.data == {"@type": "Product", "name": "Drill"}

    def test_multiple_blocks_return_list(self):
        html = _page(head=_script({"@type": "Product"}) + _script({"@type": "Organization"}))
        result = extract_embedded_data(html)
        assert result.method == "html_script_tag"
        assert result.data == [{"@type": "Product"}, {"@type": "Organization"}]

    def test_invalid_block_skipped(self):
        html = _page(head='<script type="application/ld+json">{not json</script>' + _script({"name": "ok"}))
        assert extract_embedded_data(html).data == {"name": "ok"}

    def test_empty_block_falls_through_to_metadata(self):
        html = _page(head="<title>Shop</title>" + _script({}))
        result = extract_embedded_data(html)
        assert result.method == "page_metadata"
        assert result.data == {"title": "Shop"}


class TestFrameworkState:
    def test_next_data_page_props(self):
        state = {"props": {"pageProps": {"passport": {"id": "p1"}}}, "page": "/dpp"}
        html = _page(body=_script(state, attrs='id="__NEXT_DATA__" type="application/json"'))
        result = extract_embedded_data(html)
        assert result.method == "next_data"
        assert result.data == {"passport": {"id": "p1"}}

    def test_nuxt_data(self):
        html = _page(body=_script([{"state": 1}, "value"], attrs='id="__NUXT_DATA__" type="application/json"'))
        result = extract_embedded_data(html)
        assert result.method == "nuxt_data"
        assert result.data == [{"state": 1}, "value"]

    def test_window_state_assignment(self):
        html = _page(body='<script>window.__INITIAL_STATE__ = {"product": {"gtin": "123"}}; init();</script>')
        result = extract_embedded_data(html)
        assert result.method == "state_assignment"
        assert result.data == {"product": {"gtin": "123"}}

    def test_ld_json_preferred_over_state(self):
        html = _page(
            head=_script({"name": "from ld"}),
            body='<script>window.__PRELOADED_STATE__ = {"name": "from state"};</script>',
        )
        assert extract_embedded_data(html).data == {"name": "from ld"}

    def test_next_data_with_non_object_props_ignored(self):
        for props in ("x", [1, 2], None):
            html = _page(body=_script({"props": props}, attrs='id="__NEXT_DATA__" type="application/json"'))
            assert extract_embedded_data(html) is None

    def test_over_nested_blocks_skipped(self):
        deep = "[" * 100_000 + "]" * 100_000
        html = _page(
            head=f'<script type="application/ld+json">{deep}</script>',
            body=f'<script>window.__INITIAL_STATE__ = {deep};</script>',
        )
        assert extract_embedded_data(html) is None


class TestPageMetadata:
    def test_metadata_collected(self):
        head = (
            "<title> Battery X </title>"
            '<meta name="description" content="A battery">'
            '<link rel="canonical" href="https://ex/battery">'
            '<meta property="og:title" content="Battery X">'
            '<meta property="og:image" content="https://ex/b.png">'
        )
        result = extract_embedded_data(_page(head=head))
        assert result.method == "page_metadata"
        assert result.data == {
            "title": "Battery X",
            "description": "A battery",
            "url": "https://ex/battery",
            "openGraph": {"title": "Battery X", "image": "https://ex/b.png"},
        }
        assert "@type" not in result.data

    def test_nothing_found(self):
        assert extract_embedded_data(_page(body="<p>hello</p>")) is None
        assert extract_embedded_data("") is None
