"""
DPP Graph Resolver.

Resolves Digital Product Passport documents behind non-conforming web
endpoints and expands the documents they reference into a bounded graph.
"""

__version__ = "0.1.0"
