import base64
import json
from io import BytesIO

import pytest
from docx import Document

from resumezap.core.errors import AIResponseError, AIServiceError, InvalidRequestError
from resumezap.core.proxy import normalize_result, resolve_resume
from resumezap.schemas import AIRequest


JOB = "Senior Python engineer. Must know AWS and Kubernetes."
RESUME = "Jane Doe\nPython developer with 6 years of experience."


def proxy(client, body):
    return client.post("/ai/proxy", json=body)


def test_malformed_json(client):
    response = client.post("/ai/proxy", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid request format"}


def test_get_not_allowed(client):
    assert client.get("/ai/proxy").status_code == 405


@pytest.mark.parametrize(
    "body",
    [
        {"jobPosting": JOB, "resumeContent": RESUME},
        {"type": "resume_analysis", "resumeContent": RESUME},
        {"type": "resume_analysis", "jobPosting": JOB, "resumeContent": "   "},
        {"type": "cover_letter", "jobPosting": JOB, "resumeContent": RESUME, "companyName": "Acme"},
    ],
)
def test_missing_fields(client, fake_claude, body):
    calls = fake_claude({})
    response = proxy(client, body)
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"
    assert calls == []


def test_invalid_type(client):
    response = proxy(client, {"type": "haiku", "jobPosting": JOB, "resumeContent": RESUME})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request type"


def test_invalid_tone(client):
    body = {
        "type": "cover_letter",
        "jobPosting": JOB,
        "resumeContent": RESUME,
        "companyName": "Acme",
        "jobTitle": "Engineer",
        "tone": "sarcastic",
    }
    response = proxy(client, body)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid cover letter tone"


def test_resume_analysis_success(client, fake_claude, resume_analysis_payload):
    resume_analysis_payload["matchScore"] = "91%"
    del resume_analysis_payload["changes"]
    calls = fake_claude("Sure! ```json\n" + json.dumps(resume_analysis_payload) + "\n```")

    response = proxy(client, {"type": "resume_analysis", "jobPosting": JOB, "resumeContent": RESUME})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["matchScore"] == 91
    assert data["changes"] == []
    assert data["keywordMatches"]["missing"] == ["Kubernetes"]
    assert data["tailoredResume"].startswith("JANE DOE")

    user_text = calls[0]["content"][-1]["text"]
    assert JOB in user_text
    assert "Python developer" in user_text


def test_cover_letter_includes_optional_fields(client, fake_claude, cover_letter_payload):
    calls = fake_claude(cover_letter_payload)
    body = {
        "type": "cover_letter",
        "jobPosting": JOB,
        "resumeContent": RESUME,
        "companyName": "Acme",
        "jobTitle": "Engineer",
        "tone": "concise",
        "hiringManager": "Ada Lovelace",
    }
    response = proxy(client, body)
    assert response.status_code == 200
    assert response.json()["data"]["keyStrengths"] == ["Python", "AWS"]
    assert "Ada Lovelace" in calls[0]["content"][-1]["text"]


def test_pdf_attachment_is_forwarded_as_document(client, fake_claude, skill_gap_payload):
    calls = fake_claude(skill_gap_payload)
    pdf_b64 = base64.b64encode(b"%PDF-1.4 fake").decode()
    body = {
        "type": "skill_gap",
        "jobPosting": JOB,
        "resumeFile": {"data": pdf_b64, "media_type": "application/pdf", "filename": "cv.pdf"},
    }
    response = proxy(client, body)
    assert response.status_code == 200

    content = calls[0]["content"]
    assert content[0] == {
        "type": "document",
        "source": {"type": "base64", "media_type": "application/pdf", "data": pdf_b64},
    }
    assert content[-1]["type"] == "text"


def test_invalid_attachment_encoding(client, fake_claude):
    fake_claude({})
    body = {
        "type": "resume_analysis",
        "jobPosting": JOB,
        "resumeFile": {"data": "***not base64***", "media_type": "application/pdf", "filename": "cv.pdf"},
    }
    response = proxy(client, body)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid resume file encoding"


def test_upstream_error_is_503(client, fake_claude):
    fake_claude(AIServiceError("AI service is busy. Please try again in a moment."))
    response = proxy(client, {"type": "resume_analysis", "jobPosting": JOB, "resumeContent": RESUME})
    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "error": "AI service is busy. Please try again in a moment.",
    }


def test_wrong_shape_is_500(client, fake_claude):
    fake_claude({"somethingElse": True})
    response = proxy(client, {"type": "resume_analysis", "jobPosting": JOB, "resumeContent": RESUME})
    assert response.status_code == 500
    assert response.json()["error"] == "Invalid response format from AI service"


def test_unparseable_reply_is_500(client, fake_claude):
    fake_claude("I cannot help with that.")
    response = proxy(client, {"type": "skill_gap", "jobPosting": JOB, "resumeContent": RESUME})
    assert response.status_code == 500
    assert response.json()["error"] == "AI response parsing error"


def test_unexpected_error(client, fake_claude):
    fake_claude(RuntimeError("boom"))
    response = proxy(client, {"type": "resume_analysis", "jobPosting": JOB, "resumeContent": RESUME})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error", "message": "boom"}


def test_resolve_resume_extracts_txt_attachment():
    data = base64.b64encode("Jane   Doe\nPython developer.".encode()).decode()
    req = AIRequest(
        type="resume_analysis",
        job_posting=JOB,
        resume_file={"data": data, "media_type": "text/plain", "filename": "cv.txt"},
    )
    text, documents = resolve_resume(req)
    assert text == "Jane Doe\nPython developer."
    assert documents == []


def test_normalize_skill_gap_fills_defaults():
    payload = {
        "skillGapAnalysis": {"critical": [{"skill": "Go"}]},
        "learningRecommendations": [{"skill": "Go", "courses": None}],
    }
    data = normalize_result("skill_gap", payload)
    assert data["skillGapAnalysis"]["important"] == []
    assert data["skillGapAnalysis"]["niceToHave"] == []
    assert data["learningRecommendations"][0]["courses"] == []
    assert data["skillsAlreadyStrong"] == []
    assert data["developmentRoadmap"]["phase1"]["milestones"] == []


def test_normalize_clamps_scores():
    payload = {"tailoredResume": "x", "matchScore": 140, "matchBreakdown": {"keywords": "-5"}}
    data = normalize_result("resume_analysis", payload)
    assert data["matchScore"] == 100
    assert data["matchBreakdown"]["keywords"] == 0


def test_normalize_rejects_empty_resume():
    with pytest.raises(AIResponseError):
        normalize_result("resume_analysis", {"tailoredResume": "", "matchScore": 50})


@pytest.mark.parametrize(
    "payload",
    [
        {"tailoredResume": "x", "matchScore": {"value": 85}},
        {"tailoredResume": "x", "matchScore": [85]},
        {"tailoredResume": "x", "matchScore": 85, "matchBreakdown": {"keywords": [90]}},
        {"tailoredResume": "x", "matchScore": "high"},
    ],
)
def test_normalize_rejects_non_numeric_scores(payload):
    with pytest.raises(AIResponseError) as exc:
        normalize_result("resume_analysis", payload)
    assert exc.value.message == "Invalid response format from AI service"


def test_non_numeric_score_is_a_format_error(client, fake_claude):
    fake_claude({"tailoredResume": "x", "matchScore": {"value": 85}})
    response = proxy(client, {"type": "resume_analysis", "jobPosting": JOB, "resumeContent": RESUME})
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Invalid response format from AI service"}


def _docx_b64(*paragraphs):
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    buf = BytesIO()
    doc.save(buf)
    return base64.b64encode(buf.getvalue()).decode()


def test_docx_attachment_is_inlined(client, fake_claude, skill_gap_payload):
    calls = fake_claude(skill_gap_payload)
    body = {
        "type": "skill_gap",
        "jobPosting": JOB,
        "resumeFile": {
            "data": _docx_b64("Jane Doe", "Python developer with 6 years of experience."),
            "media_type": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "filename": "cv.docx",
        },
    }
    response = proxy(client, body)
    assert response.status_code == 200

    content = calls[0]["content"]
    assert [block["type"] for block in content] == ["text"]
    assert "Jane Doe\nPython developer with 6 years of experience." in content[0]["text"]


def test_corrupt_docx_attachment(client, fake_claude):
    calls = fake_claude({})
    body = {
        "type": "resume_analysis",
        "jobPosting": JOB,
        "resumeFile": {
            "data": base64.b64encode(b"this is not a zip archive").decode(),
            "media_type": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "filename": "cv.docx",
        },
    }
    response = proxy(client, body)
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or corrupted DOCX file. Please try a different file."
    assert calls == []


def test_content_and_file_together_are_rejected(client, fake_claude):
    calls = fake_claude({})
    body = {
        "type": "resume_analysis",
        "jobPosting": JOB,
        "resumeContent": RESUME,
        "resumeFile": {"data": base64.b64encode(b"Jane Doe").decode(), "media_type": "text/plain"},
    }
    response = proxy(client, body)
    assert response.status_code == 400
    assert response.json()["error"] == "Send either resume content or a resume file, not both"
    assert calls == []


def test_resolve_resume_reports_docx_parse_error():
    req = AIRequest(
        type="resume_analysis",
        job_posting=JOB,
        resume_file={
            "data": base64.b64encode(b"garbage").decode(),
            "media_type": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "filename": "cv.docx",
        },
    )
    with pytest.raises(InvalidRequestError) as exc:
        resolve_resume(req)
    assert exc.value.message == "Invalid or corrupted DOCX file. Please try a different file."
