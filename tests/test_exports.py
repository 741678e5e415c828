import json
import zipfile
from io import BytesIO

import pytest
from docx import Document
from pypdf import PdfReader

from resumezap.core.errors import InvalidRequestError
from resumezap.services.export import export_document, html_to_text, render_docx, slugify


RESUME = "\n".join(
    [
        "Jane Doe",
        "jane@example.com | Berlin",
        "SUMMARY",
        "Backend engineer with eight years of Python.",
        "EXPERIENCE",
        "Acme Corp | Senior Engineer | 2019 - Present",
        "- Built the billing platform",
        "• Cut p99 latency by 40%",
        "SKILLS",
        "Python, Django",
        "AWS, Terraform",
        "EDUCATION",
        "BSc Computer Science",
    ]
)


def test_html_to_text_keeps_structure():
    html = "<p>Dear Ada,</p><p>I am <strong>excited</strong> to apply.<br>Thank you.</p><ul><li>Python</li><li>AWS</li></ul>"
    assert html_to_text(html) == "Dear Ada,\n\nI am excited to apply.\nThank you.\n\n- Python\n- AWS"


def test_html_to_text_passes_plain_text_through():
    text = "Dear Ada,\n\nI use a < b comparisons daily."
    assert html_to_text(text) == text


def test_slugify():
    assert slugify("Senior Engineer @ Acme, Inc.") == "senior_engineer_acme_inc"
    assert slugify("!!!", "resume") == "resume"


def test_render_docx_structure():
    doc = Document(render_docx(RESUME))
    styles = {p.text: p.style.name for p in doc.paragraphs}
    assert styles["Experience"] == "Heading 2"
    assert styles["Built the billing platform"] == "List Bullet"
    assert styles["Cut p99 latency by 40%"] == "List Bullet"
    assert styles["Jane Doe"] == "Normal"


@pytest.mark.parametrize(
    "fmt, media_type, magic",
    [
        ("pdf", "application/pdf", b"%PDF"),
        ("docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", b"PK"),
        ("txt", "text/plain; charset=utf-8", b"Jane Doe"),
    ],
)
def test_export_document(fmt, media_type, magic):
    buf, got_type, filename = export_document(RESUME, fmt, "Jane Doe Resume")
    assert got_type == media_type
    assert filename == f"jane_doe_resume.{fmt}"
    assert buf.getvalue().startswith(magic)


def test_export_document_rejects_unknown_format():
    with pytest.raises(InvalidRequestError):
        export_document(RESUME, "odt", "resume")


def test_long_text_spans_pages():
    long_text = "Jane Doe\nEXPERIENCE\n" + "\n".join(f"- Delivered milestone {i}" for i in range(200))
    buf, _, _ = export_document(long_text, "pdf", "long")
    assert len(PdfReader(buf).pages) > 1


def test_wrapped_paragraph_keeps_body_font_on_new_page():
    paragraph = " ".join(f"word{i}" for i in range(1500))
    buf, _, _ = export_document(f"Jane Doe\n{paragraph}", "pdf", "letter")
    reader = PdfReader(buf)
    assert len(reader.pages) > 1
    assert b" 10.5 Tf" in reader.pages[1].get_contents().get_data()


def _seed_library(client, auth):
    client.post(
        "/resumes",
        json={"title": "Platform Resume", "content": RESUME, "match_score": 88},
        headers=auth,
    )
    client.post(
        "/cover-letters",
        json={
            "title": "Acme Letter",
            "content": "<p>Dear Ada,</p><p>Hello.</p>",
            "company_name": "Acme",
            "job_title": "Engineer",
        },
        headers=auth,
    )
    client.post(
        "/applications",
        json={"company": "Acme", "position": "Engineer", "applied_date": "2024-01-10"},
        headers=auth,
    )


def test_free_plan_exports_pdf_only(client, auth):
    _seed_library(client, auth)
    resume = client.get("/resumes", headers=auth).json()[0]

    response = client.get(f"/resumes/{resume['id']}/export?format=docx", headers=auth)
    assert response.status_code == 402
    assert response.json()["detail"] == "Export to DOCX requires a paid plan"

    response = client.get(f"/resumes/{resume['id']}/export?format=pdf", headers=auth)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="platform_resume.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_paid_plan_exports_cover_letter_as_text(client, auth):
    _seed_library(client, auth)
    client.post("/me/plan", json={"plan": "pro"}, headers=auth)
    letter = client.get("/cover-letters", headers=auth).json()[0]

    response = client.get(f"/cover-letters/{letter['id']}/export?format=txt", headers=auth)
    assert response.status_code == 200
    assert response.text == "Dear Ada,\n\nHello."


def test_data_export_zip(client, auth, user):
    _seed_library(client, auth)
    response = client.get("/me/export", headers=auth)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"

    with zipfile.ZipFile(BytesIO(response.content)) as zf:
        names = set(zf.namelist())
        assert {
            "profile.json",
            "applications.json",
            "support_tickets.json",
            "skill_analyses.json",
            "resumes/01_platform_resume.txt",
            "resumes/01_platform_resume.pdf",
            "cover_letters/01_acme_letter.txt",
            "cover_letters/01_acme_letter.pdf",
            "errors.txt",
        } <= names
        assert zf.read("errors.txt") == b"OK"
        assert json.loads(zf.read("profile.json"))["id"] == user["id"]
        assert json.loads(zf.read("applications.json"))[0]["company"] == "Acme"
        assert json.loads(zf.read("support_tickets.json")) == []
        assert zf.read("cover_letters/01_acme_letter.txt").decode() == "Dear Ada,\n\nHello."
