"""Extract structured resume data (skills, location, history) from a file.

Supports PDF (via pdftotext or pypdf), DOCX (via stdlib zipfile) and TXT.
With an LLM API key the text goes to the model for structured extraction;
without one a heuristic parser fills in what it can.
"""
from __future__ import annotations

import json
import re
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Any, Callable
from xml.etree import ElementTree

from hiremind.errors import ResumeExtractionError
from hiremind.log import get_logger
from hiremind.retry import retry

log = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".txt")

# ── Text extraction ──────────────────────────────────────────────────────


def extract_text(path: Path) -> str:
    """Return plain text from a PDF, DOCX, or TXT file."""
    suffix = path.suffix.lower()
    if suffix == ".txt":
        return path.read_text(encoding="utf-8", errors="ignore")
    if suffix == ".docx":
        return _extract_docx(path)
    if suffix == ".pdf":
        return _extract_pdf(path)
    raise ValueError(f"Unsupported file type: {suffix}")


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together."""
    if not text or len(text) < 50:
        return text
    if text.count(" ") / len(text) > 0.08:
        return text

    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([a-zA-Z])(\d)", r"\1 \2", fixed)
    fixed = re.sub(r"(\d)([a-zA-Z])", r"\1 \2", fixed)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(path: Path) -> str:
    # pdftotext keeps word spacing better than pypdf when it is installed
    if shutil.which("pdftotext"):
        result = subprocess.run(
            ["pdftotext", "-layout", str(path), "-"],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout

    from pypdf import PdfReader

    reader = PdfReader(str(path))
    return "\n".join(_fix_spacing(page.extract_text() or "") for page in reader.pages)


def _extract_docx(path: Path) -> str:
    ns = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
    texts: list[str] = []
    with zipfile.ZipFile(path) as zf:
        with zf.open("word/document.xml") as f:
            tree = ElementTree.parse(f)
            for para in tree.iter(f"{ns}p"):
                parts = [node.text for node in para.iter(f"{ns}t") if node.text]
                if parts:
                    texts.append("".join(parts))
    return "\n".join(texts)


# ── LLM-based extraction ────────────────────────────────────────────────

_PARSE_PROMPT = """\
You are an expert resume parser. Extract the information below from the resume
text and return it as ONE valid JSON object with exactly these keys:

- "name": full name
- "email": email address
- "phone": phone number (if available)
- "location": current location (city, state, country)
- "location_city": current city (if available)
- "location_country": current country (guess it from the resume if not stated)
- "skills": array of technical skills, languages, tools and technologies
- "experience": array of {{"title", "company", "duration", "description"}}
- "education": array of {{"degree", "institution", "years"}}
- "summary": professional summary or objective (if available)

Use null for missing strings and [] for missing arrays.
Return only the JSON object, no other text.

Resume text:
{resume_text}
"""

ChatFn = Callable[[str], str]


def _openai_chat(api_key: str, model: str, base_url: str | None) -> ChatFn:
    def chat(prompt: str) -> str:
        from openai import OpenAI

        client = OpenAI(api_key=api_key, base_url=base_url, timeout=60.0)
        resp = client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=2000,
            temperature=0.1,
        )
        return (resp.choices[0].message.content or "").strip()

    return chat


@retry(max_attempts=2, base_delay=2.0, retryable=(Exception,))
def _llm_parse(resume_text: str, chat: ChatFn) -> dict[str, Any]:
    raw = chat(_PARSE_PROMPT.format(resume_text=resume_text[:12000]))
    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start == -1 or end == 0:
        raise ValueError("LLM did not return a JSON object")
    return json.loads(raw[start:end])


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def validate_and_clean(data: Any) -> dict[str, Any]:
    """Normalize model output into the stored resume shape."""
    if not isinstance(data, dict):
        data = {}

    def records(key: str, fields: tuple[str, ...]) -> list[dict[str, str | None]]:
        items = data.get(key)
        if not isinstance(items, list):
            return []
        return [
            {f: _str_or_none(item.get(f)) for f in fields}
            for item in items
            if isinstance(item, dict)
        ]

    skills = data.get("skills")
    return {
        "name": _str_or_none(data.get("name")),
        "email": _str_or_none(data.get("email")),
        "phone": _str_or_none(data.get("phone")),
        "location": _str_or_none(data.get("location")),
        "location_city": _str_or_none(data.get("location_city") or data.get("locationCity")),
        "location_country": _str_or_none(data.get("location_country") or data.get("locationCountry")),
        "skills": [s.strip() for s in skills if isinstance(s, str) and s.strip()] if isinstance(skills, list) else [],
        "experience": records("experience", ("title", "company", "duration", "description")),
        "education": records("education", ("degree", "institution", "years")),
        "summary": _str_or_none(data.get("summary")),
    }


# ── Heuristic fallback ──────────────────────────────────────────────────

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"[\+]?\d[\d\s\-().]{7,15}\d")

_COMMON_SKILLS = [
    "Python", "Java", "JavaScript", "TypeScript", "React", "Node.js", "Angular",
    "Vue", "SQL", "NoSQL", "MongoDB", "PostgreSQL", "MySQL", "Redis",
    "Docker", "Kubernetes", "AWS", "GCP", "Azure", "Terraform", "Ansible",
    "Jenkins", "Git", "Linux", "CI/CD", "GraphQL", "Microservices",
    "Django", "Flask", "FastAPI", "Spring", "Rust", "C++",
    "Machine Learning", "Deep Learning", "NLP", "Data Science", "Pandas",
    "TensorFlow", "PyTorch", "Spark", "Hadoop", "Kafka", "Elasticsearch",
    "Figma", "Tableau", "Power BI", "Excel",
]


def _heuristic_parse(text: str) -> dict[str, Any]:
    """Best-effort extraction without an LLM; location is left unknown."""
    lines = [ln.strip() for ln in text.strip().splitlines() if ln.strip()]
    name = lines[0] if lines and len(lines[0]) <= 60 else None

    low = text.lower()
    skills = [
        s for s in _COMMON_SKILLS
        if re.search(rf"(?<![\w+#]){re.escape(s.lower())}(?![\w+#])", low)
    ]

    email = _EMAIL_RE.search(text)
    phone = _PHONE_RE.search(text)
    return validate_and_clean({
        "name": name,
        "email": email.group(0) if email else None,
        "phone": phone.group(0) if phone else None,
        "skills": skills,
    })


# ── Public API ───────────────────────────────────────────────────────────


def parse_resume(
    path: Path,
    api_key: str | None = None,
    model: str = "llama-3.3-70b-versatile",
    base_url: str | None = "https://api.groq.com/openai/v1",
    chat: ChatFn | None = None,
) -> dict[str, Any]:
    """Extract structured resume data from *path*.

    Uses the LLM when *api_key* (or *chat*) is given, otherwise the heuristic
    fallback.  An LLM failure raises ResumeExtractionError rather than
    silently storing a degraded record.
    """
    log.info("Extracting text from %s", path.name)
    try:
        text = extract_text(path)
    except ValueError:
        raise
    except Exception as exc:
        raise ResumeExtractionError(f"Failed to load document: {exc}") from exc
    if not text.strip():
        raise ResumeExtractionError(f"Could not extract any text from {path.name}")

    if chat is None and api_key:
        chat = _openai_chat(api_key, model, base_url)

    if chat is None:
        log.info("No LLM key available; parsing resume with heuristic extractor")
        data = _heuristic_parse(text)
    else:
        log.info("Parsing resume with LLM (%s)", model)
        try:
            data = validate_and_clean(_llm_parse(text, chat))
        except Exception as exc:
            raise ResumeExtractionError(f"Failed to extract resume data: {exc}") from exc

    log.info("Extraction complete: skills=%d, city=%s", len(data["skills"]), data["location_city"])
    return data
