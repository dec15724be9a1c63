"""
Services layer for the DPP Graph Resolver.

MODULES:
- resolution/: Multi-strategy content negotiation + embedded data extraction
- graph/: Link extraction, bounded BFS expansion, graph structure helpers
- classification/: Format classification, trust/completeness scoring

STANDALONE SERVICES:
- identifiers: did:web <-> HTTPS normalization
- scraper: resolve -> analyze -> persist
- url_utils: URL validation and JSON-suffix handling
- retry_utils: Exponential backoff for transient failures
- user_agent: Outbound User-Agent string

ARCHITECTURE:
1. Resolution: identifiers.to_http_url → ContentNegotiator.resolve → document
2. Expansion: graph.extract_links → GraphExpander (worker pool + coordinator)
3. Analysis: classification.classify → classification.score
4. Persistence: db.DocumentStore (history, statistics, crawl targets)
"""
