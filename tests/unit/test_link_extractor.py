"""
Unit tests for @id link extraction.
"""

from dpp_graph.services.graph import extract_links, root_id


class TestExtractLinks:
    def test_nested_references_in_document_order(self):
        doc = {
            "@id": "urn:root",
            "manufacturer": {"@id": "https://ex/m"},
            "components": [
                {"@id": "https://ex/c1", "material": {"@id": "https://ex/steel"}},
                {"@id": "https://ex/c2"},
            ],
            "certificate": {"@id": "https://ex/cert"},
        }
        assert extract_links(doc) == [
            "https://ex/m",
            "https://ex/c1",
            "https://ex/steel",
            "https://ex/c2",
            "https://ex/cert",
        ]

    def test_root_id_excluded_everywhere(self):
        doc = {"@id": "urn:root", "self": {"@id": "urn:root"}, "a": {"@id": "urn:a"}}
        assert extract_links(doc) == ["urn:a"]

    def test_root_id_included_when_requested(self):
        doc = {"@id": "urn:root", "a": {"@id": "urn:a"}}
        assert extract_links(doc, exclude_root=False) == ["urn:root", "urn:a"]

    def test_duplicates_collapse(self):
        doc = {"a": {"@id": "urn:x"}, "b": [{"@id": "urn:x"}, {"@id": "urn:y"}]}
        assert extract_links(doc) == ["urn:x", "urn:y"]

    def test_context_is_skipped(self):
        doc = {
            "@context": {"@vocab": "https://schema.org/", "term": {"@id": "https://schema.org/term"}},
            "a": {"@id": "urn:a"},
        }
        assert extract_links(doc) == ["urn:a"]

    def test_blank_nodes(self):
        doc = {"a": {"@id": "_:b0"}, "b": {"@id": "urn:b"}}
        assert extract_links(doc) == ["urn:b"]
        assert extract_links(doc, include_blank_nodes=True) == ["_:b0", "urn:b"]

    def test_non_string_ids_ignored(self):
        doc = {"a": {"@id": 42}, "b": {"@id": ""}, "c": {"@id": ["urn:list"]}}
        assert extract_links(doc) == []

    def test_scalars_and_empty(self):
        assert extract_links(None) == []
        assert extract_links("urn:x") == []
        assert extract_links({}) == []

    def test_top_level_list(self):
        doc = [{"@id": "urn:a"}, {"nested": {"@id": "urn:b"}}]
        assert extract_links(doc) == ["urn:a", "urn:b"]

    def test_self_referencing_structure_terminates(self):
        doc: dict = {"@id": "urn:root", "child": {"@id": "urn:c"}}
        doc["child"]["parent"] = doc
        assert extract_links(doc) == ["urn:c"]

    def test_deep_nesting_does_not_recurse(self):
        doc: dict = {"@id": "urn:root"}
        node = doc
        for i in range(5000):
            node["next"] = {"@id": f"urn:n{i}"}
            node = node["next"]
        links = extract_links(doc)
        assert len(links) == 5000
        assert links[-1] == "urn:n4999"


class TestRootId:
    def test_root_id(self):
        assert root_id({"@id": "urn:x"}) == "urn:x"
        assert root_id({"@id": 1}) is None
        assert root_id([{"@id": "urn:x"}]) is None
