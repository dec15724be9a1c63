"""
Unit tests for the command line interface.

Only commands that need no network are exercised here.
"""

import json

import pytest
import structlog

from dpp_graph.cli import build_parser, main

PASSPORT = {
    "@context": "https://schema.org",
    "@id": "urn:root",
    "@type": "Product",
    "name": "Drill",
    "manufacturer": {"@id": "https://acme.example/org"},
    "parts": [{"@id": "https://acme.example/parts/1"}],
}


@pytest.fixture
def passport_file(tmp_path):
    path = tmp_path / "passport.json"
    path.write_text(json.dumps(PASSPORT), encoding="utf-8")
    return path


class TestParser:
    def test_expand_requires_a_source(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["expand"])

    def test_expand_file_and_identifier_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["expand", "x.json", "--identifier", "https://a.example/p"])

    def test_defaults(self):
        args = build_parser().parse_args(["expand", "x.json"])
        assert args.max_depth is None
        assert args.no_data is False


class TestClassify:
    def test_prints_analysis(self, passport_file, capsys):
        assert main(["classify", str(passport_file)]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["format"] == "JSON-LD (Schema.org)"
        assert output["product"]["name"] == "Drill"
        assert 0 <= output["trust_score"] <= 100

    def test_missing_file(self, tmp_path, capsys):
        assert main(["classify", str(tmp_path / "nope.json")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert main(["classify", str(path)]) == 1

    def test_errors_reach_each_invocations_stderr(self, tmp_path, capsys):
        missing = str(tmp_path / "nope.json")

        assert main(["classify", missing]) == 1
        first = capsys.readouterr().err
        assert main(["classify", missing]) == 1
        second = capsys.readouterr().err

        assert "Command failed" in first
        assert "Command failed" in second
        assert structlog.get_config()["cache_logger_on_first_use"] is False


class TestExpand:
    def test_discovery_only(self, passport_file, capsys):
        assert main(["expand", str(passport_file), "--max-depth", "0", "--structure"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert list(output["links"]) == ["https://acme.example/org", "https://acme.example/parts/1"]
        assert output["stats"]["pending"] == 2
        assert output["stats"]["resolved"] == 0
        assert output["structure"]["nodes"][0]["id"] == "urn:root"

    def test_invalid_budget(self, passport_file, capsys):
        assert main(["expand", str(passport_file), "--max-depth", "-1"]) == 1
        assert "max_depth" in capsys.readouterr().err


class TestResolve:
    def test_unsupported_scheme(self, capsys):
        assert main(["resolve", "urn:isbn:9780000000000"]) == 1

        output = json.loads(capsys.readouterr().out)
        assert output["success"] is False
        assert output["attempts"][0]["strategy"] == "scheme_check"
        assert output["attempts"][0]["error_kind"] == "scheme"


class TestDiscover:
    def test_rejects_non_http(self, capsys):
        assert main(["discover", "did:key:abc"]) == 1
        assert "Not an HTTP(S) URL" in capsys.readouterr().err
