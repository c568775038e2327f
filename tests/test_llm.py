import http.client

import pytest

from meeting_intel.services import llm


class FakePost:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def __call__(self, url, headers, data, timeout=None):
        self.calls.append({"url": url, "headers": headers, "data": data, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_no_keys_means_no_provider():
    assert llm.provider_and_model() == ("none", None)
    assert llm.is_configured() is False


def test_auto_prefers_anthropic_then_openai(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert llm.provider_and_model() == ("openai", "gpt-4o-mini")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-test")
    assert llm.provider_and_model() == ("anthropic", "claude-3-haiku-20240307")


def test_explicit_provider_and_model_override(monkeypatch):
    monkeypatch.setenv("NOTES_SUMMARY_PROVIDER", "groq")
    monkeypatch.setenv("NOTES_GROQ_MODEL", "llama-3.3-70b-versatile")
    assert llm.provider_and_model() == ("groq", "llama-3.3-70b-versatile")
    # selected but no key
    assert llm.is_configured() is False


def test_anthropic_messages_call(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ak-test")
    fake = FakePost({"content": [{"type": "text", "text": '{"summary_points": []}'}]})
    monkeypatch.setattr(llm, "_http_post", fake)

    content, provider, model = llm.complete("system text", "user text")

    assert (content, provider, model) == ('{"summary_points": []}', "anthropic", "claude-3-haiku-20240307")
    call = fake.calls[0]
    assert call["url"] == "https://api.anthropic.com/v1/messages"
    assert call["headers"]["x-api-key"] == "ak-test"
    assert call["headers"]["anthropic-version"] == llm.ANTHROPIC_VERSION
    assert call["data"]["system"] == "system text"
    assert call["data"]["messages"] == [{"role": "user", "content": "user text"}]
    assert call["data"]["max_tokens"] == 800


def test_openai_compatible_call_uses_base_override(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_API_BASE", "http://localhost:9999/v1/")
    fake = FakePost({"choices": [{"message": {"content": "  hello  "}}]})
    monkeypatch.setattr(llm, "_http_post", fake)

    content, provider, _ = llm.complete("s", "u")

    assert content == "hello" and provider == "openai"
    assert fake.calls[0]["url"] == "http://localhost:9999/v1/chat/completions"
    assert fake.calls[0]["headers"]["Authorization"] == "Bearer sk-test"
    assert [m["role"] for m in fake.calls[0]["data"]["messages"]] == ["system", "user"]


def test_huggingface_summary_text(monkeypatch):
    monkeypatch.setenv("HUGGINGFACE_API_KEY", "hf-test")
    fake = FakePost([{"summary_text": "The team moved the launch."}])
    monkeypatch.setattr(llm, "_http_post", fake)

    content, provider, model = llm.complete("ignored", "notes")

    assert content == "The team moved the launch."
    assert provider == "huggingface" and model == "facebook/bart-large-cnn"
    assert fake.calls[0]["url"].endswith("/facebook/bart-large-cnn")
    assert fake.calls[0]["data"]["inputs"] == "notes"


def test_empty_or_error_responses_raise(monkeypatch):
    monkeypatch.setenv("HUGGINGFACE_API_KEY", "hf-test")
    monkeypatch.setattr(llm, "_http_post", FakePost({"error": "Model is loading"}))
    with pytest.raises(llm.ProviderError, match="Model is loading"):
        llm.complete("s", "u")


def test_error_message_prefers_provider_message():
    payload = '{"type": "error", "error": {"type": "invalid_request_error", "message": "Your credit balance is too low"}}'
    assert llm._error_message(payload, 400) == "Your credit balance is too low"
    assert llm._error_message("", 503) == "HTTP 503"


def test_diagnostics_without_keys():
    info = llm.diagnostics()
    assert info["provider"] == "none"
    assert info["probe_ok"] is False
    assert info["error"] == "No provider API key set"
    assert set(info["keys"]) == set(llm.PROVIDERS)


def test_complete_passes_timeout(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    fake = FakePost({"choices": [{"message": {"content": "ok"}}]})
    monkeypatch.setattr(llm, "_http_post", fake)
    llm.complete("s", "u", timeout=7)
    assert fake.calls[0]["timeout"] == 7


@pytest.mark.parametrize(
    "exc,message",
    [
        (TimeoutError("timed out"), "Provider request timed out"),
        (http.client.RemoteDisconnected("Remote end closed connection"), "Provider connection failed"),
        (ConnectionResetError("reset by peer"), "Provider connection failed"),
    ],
)
def test_network_failures_become_provider_errors(monkeypatch, exc, message):
    def raise_exc(*args, **kwargs):
        raise exc

    monkeypatch.setattr(llm.request, "urlopen", raise_exc)
    with pytest.raises(llm.ProviderError, match=message):
        llm._http_post("https://api.example.test/v1/chat/completions", {}, {"x": 1}, timeout=1)
