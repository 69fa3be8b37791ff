from __future__ import annotations

from hiremind.contexts import expand_contexts
from hiremind.models import ContextKind, SearchContext


def test_city_known_gives_three_contexts():
    assert expand_contexts(True, "Pune", "India") == [
        SearchContext(ContextKind.LOCAL, "Pune"),
        SearchContext(ContextKind.NATIONAL, "India"),
        SearchContext(ContextKind.REMOTE, ""),
    ]


def test_no_city_skips_local():
    contexts = expand_contexts(False, "Pune", "India")
    assert [c.kind for c in contexts] == [ContextKind.NATIONAL, ContextKind.REMOTE]


def test_unknown_country_is_an_empty_location():
    contexts = expand_contexts(False, "", "")
    assert contexts[0].location == ""
    assert contexts[-1].is_remote
