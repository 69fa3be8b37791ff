"""Resume extraction without network access: text files, DOCX, fake LLM."""
from __future__ import annotations

import json
import zipfile

import pytest

from hiremind.errors import ResumeExtractionError
from hiremind.resume_parser import extract_text, parse_resume, validate_and_clean

RESUME_TEXT = """Asha Rao
asha.rao@example.com | +91 98765 43210 | Pune, India

Skills: Python, Django, PostgreSQL, Docker, JavaScript

Experience
Backend Engineer, Acme Corp, 2020-2024
"""

LLM_REPLY = {
    "name": "Asha Rao",
    "email": "asha.rao@example.com",
    "phone": "+91 98765 43210",
    "location": "Pune, Maharashtra, India",
    "location_city": "Pune",
    "location_country": "India",
    "skills": ["Python", "Django", " ", 7, "PostgreSQL"],
    "experience": [{"title": "Backend Engineer", "company": "Acme Corp", "duration": "2020-2024"}, "junk"],
    "education": [],
    "summary": "",
}


@pytest.fixture
def txt_resume(tmp_path):
    path = tmp_path / "resume-1-ab.txt"
    path.write_text(RESUME_TEXT, encoding="utf-8")
    return path


def _docx(path, paragraphs):
    ns = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
    body = "".join(f"<w:p><w:r><w:t>{p}</w:t></w:r></w:p>" for p in paragraphs)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("word/document.xml", f'<w:document xmlns:w="{ns}"><w:body>{body}</w:body></w:document>')
    return path


def test_extract_text_from_txt_and_docx(tmp_path, txt_resume):
    assert extract_text(txt_resume).startswith("Asha Rao")
    docx = _docx(tmp_path / "cv.docx", ["Asha Rao", "Python developer"])
    assert extract_text(docx) == "Asha Rao\nPython developer"


def test_unsupported_extension(tmp_path):
    path = tmp_path / "cv.rtf"
    path.write_text("hello")
    with pytest.raises(ValueError):
        parse_resume(path)


def test_empty_document_is_an_extraction_error(tmp_path):
    path = tmp_path / "blank.txt"
    path.write_text("   \n")
    with pytest.raises(ResumeExtractionError):
        parse_resume(path)


def test_corrupt_docx_is_an_extraction_error(tmp_path):
    path = tmp_path / "broken.docx"
    path.write_bytes(b"not a zip")
    with pytest.raises(ResumeExtractionError):
        parse_resume(path)


def test_validate_and_clean_normalizes_model_output():
    cleaned = validate_and_clean(LLM_REPLY)
    assert cleaned["skills"] == ["Python", "Django", "PostgreSQL"]
    assert cleaned["experience"] == [
        {"title": "Backend Engineer", "company": "Acme Corp", "duration": "2020-2024", "description": None}
    ]
    assert cleaned["summary"] is None
    assert cleaned["location_city"] == "Pune"


def test_validate_and_clean_accepts_camel_case_location_keys():
    cleaned = validate_and_clean({"locationCity": "Berlin", "locationCountry": "Germany"})
    assert (cleaned["location_city"], cleaned["location_country"]) == ("Berlin", "Germany")
    assert validate_and_clean("nonsense")["skills"] == []


def test_parse_with_llm(txt_resume):
    prompts = []

    def chat(prompt):
        prompts.append(prompt)
        return "Sure! " + json.dumps(LLM_REPLY)

    data = parse_resume(txt_resume, chat=chat)

    assert data["location_country"] == "India"
    assert data["skills"] == ["Python", "Django", "PostgreSQL"]
    assert "Asha Rao" in prompts[0]


def test_llm_failure_is_reported(txt_resume):
    def chat(prompt):
        return "I could not read that resume."

    with pytest.raises(ResumeExtractionError):
        parse_resume(txt_resume, chat=chat)


def test_heuristic_parse_without_key(txt_resume):
    data = parse_resume(txt_resume, api_key=None)

    assert data["name"] == "Asha Rao"
    assert data["email"] == "asha.rao@example.com"
    assert set(data["skills"]) == {"Python", "Django", "PostgreSQL", "Docker", "JavaScript"}
    assert data["location_city"] is None
