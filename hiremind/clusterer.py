"""Group a flat skill list into small search-keyword clusters with an LLM."""
from __future__ import annotations

import json
from typing import Any, Callable

from hiremind.errors import ClusteringUnavailable
from hiremind.log import get_logger
from hiremind.models import SkillCluster
from hiremind.retry import retry

log = get_logger(__name__)

MAX_CLUSTER_SIZE = 5

_CLUSTER_PROMPT = """\
You are an expert in the tech job market. Group the candidate skills below
into 3-5 keyword clusters that would work well as job-search queries.

Skills: {skills}

Rules:
1. Each cluster should represent a likely job role or a skill combination employers ask for together.
2. At most {max_size} skills per cluster.
3. A skill may appear in more than one cluster.
4. Only use skills from the list above.
5. Return ONLY a JSON array of arrays of strings, no other text.

Example: [["JavaScript","React.js","Node.js"], ["Python","Django","SQL"]]
"""

ChatFn = Callable[[str], str]


def _matches_user_skill(candidate: str, user_skills_lower: list[str]) -> bool:
    c = candidate.lower()
    return any(c in s or s in c for s in user_skills_lower)


def validate_clusters(raw: Any, skills: list[str], max_size: int = MAX_CLUSTER_SIZE) -> list[SkillCluster]:
    """Keep clusters of real user skills, at most *max_size* long.

    Falls back to a single cluster of the first skills when nothing usable
    survives.
    """
    if not isinstance(raw, list):
        raise ClusteringUnavailable("Clusters must be a JSON array")

    user_lower = [s.lower() for s in skills if s]
    clusters: list[SkillCluster] = []
    for group in raw:
        if not isinstance(group, list):
            log.warning("Skipping invalid cluster (not an array): %r", group)
            continue
        valid = [
            s.strip() for s in group
            if isinstance(s, str) and s.strip() and _matches_user_skill(s.strip(), user_lower)
        ]
        if valid:
            clusters.append(tuple(valid[:max_size]))

    if not clusters:
        log.info("No usable clusters from model; falling back to top %d skills", max_size)
        clusters.append(tuple(skills[:max_size]))
    return clusters


def parse_cluster_response(text: str) -> Any:
    raw = (text or "").strip()
    start = raw.find("[")
    end = raw.rfind("]") + 1
    candidate = raw[start:end] if start != -1 and end > start else raw
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        log.error("Unparseable clustering response: %.200s", raw)
        raise ClusteringUnavailable("Invalid JSON response from clustering model") from exc


class SkillClusterer:
    """LLM-backed clusterer.

    *chat* may be injected (tests, alternative providers); by default an
    OpenAI-compatible chat completion is used.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "llama-3.3-70b-versatile",
        base_url: str | None = "https://api.groq.com/openai/v1",
        max_size: int = MAX_CLUSTER_SIZE,
        chat: ChatFn | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.base_url = base_url
        self.max_size = max_size
        self._chat = chat

    @retry(max_attempts=2, base_delay=2.0, retryable=(Exception,))
    def _complete(self, prompt: str) -> str:
        if self._chat is not None:
            return self._chat(prompt)

        from openai import OpenAI

        client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=30.0)
        resp = client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=600,
            temperature=0.2,
        )
        return (resp.choices[0].message.content or "").strip()

    def cluster(self, skills: list[str]) -> list[SkillCluster]:
        skills = [s for s in skills if isinstance(s, str) and s.strip()]
        if not skills:
            return []
        if not self.api_key and self._chat is None:
            raise ClusteringUnavailable("No LLM API key configured for skill clustering")

        prompt = _CLUSTER_PROMPT.format(skills=", ".join(skills), max_size=self.max_size)
        try:
            text = self._complete(prompt)
        except Exception as exc:
            raise ClusteringUnavailable(f"Failed to generate skill clusters: {exc}") from exc

        clusters = validate_clusters(parse_cluster_response(text), skills, self.max_size)
        log.info("Generated %d skill clusters from %d skills", len(clusters), len(skills))
        return clusters
