"""Skill clustering: model output validation and failure handling."""
from __future__ import annotations

import pytest

from hiremind.clusterer import SkillClusterer, parse_cluster_response, validate_clusters
from hiremind.errors import ClusteringUnavailable

SKILLS = ["Python", "Django", "PostgreSQL", "React.js", "Node.js", "Docker", "AWS"]


def test_clusters_are_restricted_to_user_skills():
    raw = [["Python", "Django", "Kotlin"], ["react", "Node"], ["Haskell"]]
    assert validate_clusters(raw, SKILLS) == [("Python", "Django"), ("react", "Node")]


def test_clusters_are_truncated():
    raw = [SKILLS]
    assert validate_clusters(raw, SKILLS, max_size=3) == [("Python", "Django", "PostgreSQL")]


def test_invalid_members_are_skipped():
    raw = ["Python", {"skills": ["SQL"]}, ["Docker", 42, "  "]]
    assert validate_clusters(raw, SKILLS) == [("Docker",)]


def test_nothing_usable_falls_back_to_top_skills():
    assert validate_clusters([["Cobol"]], SKILLS) == [("Python", "Django", "PostgreSQL", "React.js", "Node.js")]


def test_non_array_output_is_rejected():
    with pytest.raises(ClusteringUnavailable):
        validate_clusters({"clusters": []}, SKILLS)


def test_parse_response_tolerates_surrounding_prose():
    text = 'Here you go:\n```json\n[["Python", "Django"], ["AWS"]]\n```'
    assert parse_cluster_response(text) == [["Python", "Django"], ["AWS"]]


def test_parse_response_rejects_garbage():
    with pytest.raises(ClusteringUnavailable):
        parse_cluster_response("I cannot help with that")


def test_cluster_uses_injected_chat():
    prompts = []

    def chat(prompt):
        prompts.append(prompt)
        return '[["Python","Django","PostgreSQL"],["React.js","Node.js"]]'

    clusterer = SkillClusterer(api_key=None, chat=chat)

    assert clusterer.cluster(SKILLS) == [("Python", "Django", "PostgreSQL"), ("React.js", "Node.js")]
    assert len(prompts) == 1
    assert "Python, Django, PostgreSQL" in prompts[0]


def test_empty_skills_make_no_model_call():
    def chat(prompt):
        raise AssertionError("model must not be called")

    assert SkillClusterer(api_key="k", chat=chat).cluster([]) == []


def test_missing_key_is_unavailable():
    with pytest.raises(ClusteringUnavailable):
        SkillClusterer(api_key="").cluster(SKILLS)


def test_model_errors_become_unavailable_after_retry():
    calls = []

    def chat(prompt):
        calls.append(prompt)
        raise RuntimeError("503 from provider")

    with pytest.raises(ClusteringUnavailable):
        SkillClusterer(api_key="k", chat=chat).cluster(SKILLS)
    assert len(calls) == 2
