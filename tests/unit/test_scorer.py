"""
Unit tests for trust and completeness scoring.
"""

import copy

from dpp_graph.services.classification import FormatLabel, analyze, classify, count_fields, score

CREDENTIAL = {
    "@context": ["https://www.w3.org/2018/credentials/v1"],
    "type": ["VerifiableCredential"],
    "issuer": "did:web:issuer.example",
    "credentialSubject": {"name": "Drill"},
}


class TestCountFields:
    def test_nested(self):
        assert count_fields({"a": 1, "b": {"c": 2}}) == 3

    def test_lists_count_items(self):
        assert count_fields({"a": [1, 2]}) == 3

    def test_depth_limit(self):
        deep = {"l0": {"l1": {"l2": {"l3": {"l4": {"l5": {"l6": {"l7": 1}}}}}}}}
        assert count_fields(deep) == 6
        assert count_fields(deep, max_depth=1) == 2

    def test_scalars_and_empty(self):
        assert count_fields("x") == 0
        assert count_fields({}) == 0


class TestScore:
    def test_credential(self):
        result = score(CREDENTIAL, FormatLabel.VERIFIABLE_CREDENTIAL)
        # base 30 + 7 fields * 2
        assert result.trust_score == 44
        # issuanceDate missing
        assert result.completeness_score == 80

    def test_trust_capped_at_100(self):
        doc = {"type": "VerifiableCredential", "certifications": ["ISO 9001", "ISO 14001", "CE"]}
        doc.update({f"f{i}": i for i in range(20)})
        assert score(doc, FormatLabel.VERIFIABLE_CREDENTIAL).trust_score == 100

    def test_certification_points(self):
        plain = score({"name": "x"}, FormatLabel.JSON).trust_score
        certified = score({"name": "x", "certification": "CE"}, FormatLabel.JSON).trust_score
        # one extra field (2) plus one certification (10)
        assert certified - plain == 12

    def test_default_required_fields(self):
        result = score({"name": "Drill", "manufacturer": "ACME"}, FormatLabel.JSON)
        assert result.completeness_score == 67

    def test_dotted_paths(self):
        doc = {
            "type": ["DigitalProductPassport"],
            "issuer": "did:web:x",
            "credentialSubject": {"product": {"name": "Widget", "identifier": None}},
        }
        assert score(doc, FormatLabel.UNTP_DPP).completeness_score == 75

    def test_empty_document(self):
        result = score(None, FormatLabel.UNKNOWN)
        assert result.trust_score == 0
        assert result.completeness_score == 0


class TestAnalyze:
    def test_one_pass_summary(self):
        result = analyze(CREDENTIAL, "application/ld+json").to_dict()

        assert result["format"] == "Verifiable Credential"
        assert result["rule"] == "verifiable_credential"
        assert result["trust_score"] == 44
        assert result["completeness_score"] == 80
        assert result["product"]["name"] == "Drill"
        assert result["certifications"] == []
        assert result["service_endpoints"] == []

    def test_did_document_service_endpoints(self):
        did_doc = {
            "@context": "https://www.w3.org/ns/did/v1",
            "id": "did:web:acme.example",
            "service": [
                {"id": "#dpp", "type": "DigitalProductPassport", "serviceEndpoint": "https://acme.example/dpp"},
                {"id": "#empty", "type": "LinkedDomains"},
            ],
        }

        result = analyze(did_doc).to_dict()

        assert result["service_endpoints"] == [
            {"id": "#dpp", "type": "DigitalProductPassport", "endpoint": "https://acme.example/dpp"},
        ]

    def test_same_input_same_output(self):
        document = {
            **CREDENTIAL,
            "credentialSubject": {"name": "Drill", "certifications": [{"name": "CE"}]},
        }
        snapshot = copy.deepcopy(document)

        first = analyze(document, "application/ld+json").to_dict()
        second = analyze(copy.deepcopy(document), "application/ld+json").to_dict()

        assert first == second
        assert classify(document) == classify(snapshot)
        assert score(document, FormatLabel.VERIFIABLE_CREDENTIAL) == score(snapshot, FormatLabel.VERIFIABLE_CREDENTIAL)
        assert document == snapshot
