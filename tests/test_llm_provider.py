from types import SimpleNamespace

import pytest
import requests

from showfinder.integrations.llm_provider import GeminiProvider, OpenAIProvider, build_provider
from showfinder.show_ingest.errors import ExtractionServiceError

from conftest import FakeResponse


class _PostSession:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def _gemini_body(text):
    return '{"candidates": [{"content": {"parts": [{"text": %s}]}}]}' % ('"' + text + '"')


def test_gemini_posts_prompt_and_returns_text():
    session = _PostSession(FakeResponse(_gemini_body("[]")))
    provider = GeminiProvider(api_key="k", model="gemini-1.5-flash", session=session)

    assert provider.generate("find shows", timeout_s=30) == "[]"

    url, kwargs = session.calls[0]
    assert url.endswith("/models/gemini-1.5-flash:generateContent")
    assert kwargs["params"] == {"key": "k"}
    assert kwargs["timeout"] == 30
    assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "find shows"
    assert kwargs["json"]["generationConfig"] == {"temperature": 0.2, "topP": 0.8, "topK": 40}


@pytest.mark.parametrize(
    "result",
    [
        requests.Timeout("slow"),
        requests.ConnectionError("down"),
        FakeResponse("quota exceeded", status_code=429, reason="Too Many Requests"),
        FakeResponse("<html>oops</html>"),
        FakeResponse('{"candidates": []}'),
        FakeResponse(_gemini_body("   ")),
        FakeResponse('{"candidates": [{"content": {"parts": [{"text": 42}]}}]}'),
    ],
)
def test_gemini_failures_raise_extraction_service_error(result):
    provider = GeminiProvider(api_key="k", session=_PostSession(result))
    with pytest.raises(ExtractionServiceError):
        provider.generate("find shows", timeout_s=30)


class _FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _openai_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_openai_returns_message_text_with_deadline():
    completions = _FakeCompletions(content=' [{"name": "A"}] ')
    provider = OpenAIProvider(api_key="k", model="gpt-4.1-mini", client_instance=_openai_client(completions))

    assert provider.generate("find shows", timeout_s=12) == '[{"name": "A"}]'
    assert completions.kwargs["timeout"] == 12
    assert completions.kwargs["model"] == "gpt-4.1-mini"


def test_openai_errors_and_empty_text_raise():
    failing = OpenAIProvider(api_key="k", client_instance=_openai_client(_FakeCompletions(error=RuntimeError("boom"))))
    empty = OpenAIProvider(api_key="k", client_instance=_openai_client(_FakeCompletions(content="")))

    with pytest.raises(ExtractionServiceError):
        failing.generate("x", timeout_s=1)
    with pytest.raises(ExtractionServiceError):
        empty.generate("x", timeout_s=1)


def test_build_provider_rejects_unknown_backend():
    assert isinstance(build_provider("gemini", api_key="k", model="m"), GeminiProvider)
    with pytest.raises(ValueError):
        build_provider("watson", api_key="k", model="m")
