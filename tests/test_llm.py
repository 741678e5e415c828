import pytest
import requests

from resumezap.config import get_settings
from resumezap.core.errors import AIResponseError, AIServiceError, ConfigurationError
from resumezap.services import llm


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


@pytest.fixture
def post(monkeypatch):
    captured = {}

    def install(response=None, exc=None):
        def _post(url, json=None, headers=None, timeout=None):
            captured.update(url=url, json=json, headers=headers, timeout=timeout)
            if exc is not None:
                raise exc
            return response

        monkeypatch.setattr(llm.requests, "post", _post)
        return captured

    return install


def test_claude_messages_returns_first_text_block(post):
    captured = post(FakeResponse(body={"content": [{"type": "text", "text": '{"ok": true}'}]}))
    content = [{"type": "text", "text": "hello"}]

    assert llm.claude_messages("system prompt", content) == '{"ok": true}'

    settings = get_settings()
    assert captured["url"] == settings.anthropic_url
    assert captured["headers"]["x-api-key"] == "test-key"
    assert captured["headers"]["anthropic-version"] == "2023-06-01"
    assert captured["json"]["system"] == "system prompt"
    assert captured["json"]["max_tokens"] == settings.max_tokens
    assert captured["json"]["messages"] == [{"role": "user", "content": content}]


@pytest.mark.parametrize(
    "status, message",
    [
        (429, "AI service is busy. Please try again in a moment."),
        (401, "AI service authentication error"),
        (500, "AI service temporarily unavailable"),
    ],
)
def test_claude_messages_maps_upstream_errors(post, status, message):
    post(FakeResponse(status_code=status, text="upstream said no"))
    with pytest.raises(AIServiceError) as exc:
        llm.claude_messages("s", [])
    assert exc.value.message == message
    assert exc.value.status_code == 503


def test_claude_messages_network_error(post):
    post(exc=requests.ConnectionError("refused"))
    with pytest.raises(AIServiceError) as exc:
        llm.claude_messages("s", [])
    assert exc.value.message == "Network error: Unable to connect to AI service."


def test_claude_messages_rejects_missing_text(post):
    post(FakeResponse(body={"content": []}))
    with pytest.raises(AIResponseError) as exc:
        llm.claude_messages("s", [])
    assert exc.value.message == "Invalid AI response format"


def test_claude_messages_requires_api_key(monkeypatch, post):
    captured = post(FakeResponse(body={"content": [{"text": "x"}]}))
    no_key = get_settings().model_copy(update={"anthropic_api_key": None})
    monkeypatch.setattr(llm, "get_settings", lambda: no_key)

    with pytest.raises(ConfigurationError) as exc:
        llm.claude_messages("s", [])
    assert exc.value.message == "AI service configuration error"
    assert captured == {}


def test_extract_json_plain():
    assert llm.extract_json_strict('{"a": 1}') == {"a": 1}


def test_extract_json_fenced():
    assert llm.extract_json_strict('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}


def test_extract_json_surrounded_by_prose():
    text = 'Here is the analysis:\n{"matchScore": 80, "notes": "ok"}\nLet me know!'
    assert llm.extract_json_strict(text) == {"matchScore": 80, "notes": "ok"}


def test_extract_json_python_literal():
    assert llm.extract_json_strict("{'a': 'single quotes'}") == {"a": "single quotes"}


@pytest.mark.parametrize("text", ["no json here", "[1, 2, 3]", "{broken: json", ""])
def test_extract_json_failures(text):
    with pytest.raises(AIResponseError) as exc:
        llm.extract_json_strict(text)
    assert exc.value.message == "AI response parsing error"
