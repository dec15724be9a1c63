"""
Unit tests for wide event enrichment and sampling.
"""

import contextvars

from dpp_graph.core.exceptions import InvalidInputError
from dpp_graph.core.logging import (
    enrich_event,
    finalize_request_event,
    init_request_event,
    record_fetch,
    should_sample,
)


def in_request(fn):
    """Run ``fn`` inside a fresh request event and return the finalized event."""
    def run():
        init_request_event(request_id="req1", method="POST", path="/api/v1/resolve")
        fn()
        return finalize_request_event(200)
    return contextvars.copy_context().run(run)


class TestEnrichment:
    def test_dotted_keys_nest(self):
        event = in_request(lambda: enrich_event(**{"graph.resolved": 2, "graph.failed": 1}))
        assert event["graph"] == {"resolved": 2, "failed": 1}

    def test_noop_outside_request(self):
        # Must not raise without an active request
        contextvars.copy_context().run(lambda: enrich_event(foo=1))
        contextvars.copy_context().run(lambda: record_fetch("https://a.example/x", 200))

    def test_record_fetch_counts_per_origin(self):
        def fetches():
            record_fetch("https://a.example/1", 200)
            record_fetch("https://a.example/2", 404)
            record_fetch("https://b.example/1", None)

        event = in_request(fetches)

        assert event["outbound"] == {
            "requests": 3,
            "failed": 2,
            "origins": {"a.example": 2, "b.example": 1},
        }

    def test_error_details_attached(self):
        def run():
            init_request_event()
            return finalize_request_event(400, InvalidInputError("bad", {"field": "max_depth"}))

        event = contextvars.copy_context().run(run)

        assert event["outcome"] == "error"
        assert event["error"] == {"type": "InvalidInputError", "message": "bad", "details": {"field": "max_depth"}}


class TestSampling:
    def test_errors_kept(self):
        assert should_sample({"http": {"status_code": 502}, "duration_ms": 5})

    def test_slow_kept(self):
        assert should_sample({"http": {"status_code": 200}, "duration_ms": 10_000})

    def test_outbound_kept(self):
        assert should_sample({"http": {"status_code": 200}, "duration_ms": 5, "outbound": {"requests": 1}})

    def test_quiet_reads_sampled(self, monkeypatch):
        monkeypatch.setattr("dpp_graph.core.logging.random.random", lambda: 0.99)
        assert not should_sample({"http": {"status_code": 200}, "duration_ms": 5})
