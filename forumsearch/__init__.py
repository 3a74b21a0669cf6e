"""
ForumSearch - Faceted search over forum users, categories and topics.

Example:
    >>> from forumsearch.domains.search import FacetedSearch, SearchRequest
    >>> engine = FacetedSearch(repo)
    >>> results = await engine.execute(SearchRequest(term="door sensor"))
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
