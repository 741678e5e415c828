import json
import os
import tempfile
import uuid

_tmp_dir = tempfile.mkdtemp(prefix="resumezap-tests-")
os.environ["RESUMEZAP_DATABASE_URL"] = "sqlite:///" + os.path.join(_tmp_dir, "test.db")
os.environ["ANTHROPIC_API_KEY"] = "test-key"
os.environ["RESUMEZAP_LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from resumezap.config import get_settings  # noqa: E402

get_settings.cache_clear()

from resumezap.core import proxy  # noqa: E402
from resumezap.db.database import SessionLocal, init_db  # noqa: E402
from resumezap.main import app  # noqa: E402

init_db()


RESUME_ANALYSIS_PAYLOAD = {
    "tailoredResume": "JANE DOE\nSUMMARY\nBackend engineer with Python and AWS.\nSKILLS\nPython\nAWS",
    "matchScore": 87,
    "matchBreakdown": {"keywords": 90, "skills": 85, "experience": 80, "formatting": 95},
    "changes": [
        {"section": "Summary", "original": "Engineer", "improved": "Backend engineer", "reason": "Keywords"}
    ],
    "keywordMatches": {"found": ["Python"], "missing": ["Kubernetes"], "suggestions": ["Add Kubernetes"]},
    "atsOptimizations": ["Use standard headings"],
}

COVER_LETTER_PAYLOAD = {
    "coverLetter": "Dear Hiring Manager,\n\nI am excited to apply.\n\nSincerely,\nJane",
    "customizations": ["Mentioned the platform team"],
    "keyStrengths": ["Python", "AWS"],
    "callToAction": "I would welcome a conversation.",
}

SKILL_GAP_PAYLOAD = {
    "skillGapAnalysis": {
        "critical": [{"skill": "Kubernetes", "currentLevel": "None", "requiredLevel": "Advanced", "gap": "Large"}],
        "important": [{"skill": "Terraform", "currentLevel": "Basic", "requiredLevel": "Intermediate", "gap": "Medium"}],
        "niceToHave": [{"skill": "Go", "currentLevel": "None", "requiredLevel": "Basic", "gap": "Small"}],
    },
    "learningRecommendations": [
        {
            "skill": "Kubernetes",
            "priority": "High",
            "timeInvestment": "6-8 weeks",
            "courses": [{"platform": "Coursera", "courseName": "Kubernetes Basics", "cost": "$49"}],
            "freeResources": [{"type": "Documentation", "resource": "kubernetes.io docs"}],
            "certifications": [],
            "practicalApplication": "Deploy a side project",
        }
    ],
    "developmentRoadmap": {"phase1": {"duration": "Weeks 1-4", "focus": "Kubernetes", "milestones": ["Deploy"]}},
    "skillsAlreadyStrong": ["Python"],
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def user(client):
    response = client.post(
        "/users",
        json={"email": f"user-{uuid.uuid4().hex[:8]}@example.com", "name": "Jane Doe"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth(user):
    return {"X-User-Id": user["id"]}


@pytest.fixture
def fake_claude(monkeypatch):
    """Replace the upstream call; returns the list of captured calls."""
    calls = []

    def install(reply):
        def _fake(system, content):
            calls.append({"system": system, "content": content})
            if isinstance(reply, Exception):
                raise reply
            return reply if isinstance(reply, str) else json.dumps(reply)

        monkeypatch.setattr(proxy, "claude_messages", _fake)
        return calls

    return install


@pytest.fixture
def resume_analysis_payload():
    return json.loads(json.dumps(RESUME_ANALYSIS_PAYLOAD))


@pytest.fixture
def cover_letter_payload():
    return json.loads(json.dumps(COVER_LETTER_PAYLOAD))


@pytest.fixture
def skill_gap_payload():
    return json.loads(json.dumps(SKILL_GAP_PAYLOAD))
