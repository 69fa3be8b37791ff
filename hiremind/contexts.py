"""Expand a resume location into the search contexts evaluated per cluster."""
from __future__ import annotations

from hiremind.models import ContextKind, SearchContext


def expand_contexts(has_city: bool, city: str, country: str) -> list[SearchContext]:
    """Local (only with a known city), then national, then remote.

    The order is the traversal order inside every cluster.
    """
    contexts: list[SearchContext] = []
    if has_city:
        contexts.append(SearchContext(ContextKind.LOCAL, city or ""))
    contexts.append(SearchContext(ContextKind.NATIONAL, country or ""))
    contexts.append(SearchContext(ContextKind.REMOTE, ""))
    return contexts
