from __future__ import annotations

import http.client
import json
import logging
import os
import socket
import ssl
from typing import Any, Dict, List, Optional, Tuple
from urllib import request, error

from .. import __version__

logger = logging.getLogger("app.llm")

PROVIDERS = ("anthropic", "openai", "groq", "huggingface")

DEFAULT_MODELS = {
    "anthropic": "claude-3-haiku-20240307",
    "openai": "gpt-4o-mini",
    "groq": "llama-3.1-70b-versatile",
    "huggingface": "facebook/bart-large-cnn",
}

# provider -> (api key env, model env)
_ENV = {
    "anthropic": ("ANTHROPIC_API_KEY", "NOTES_ANTHROPIC_MODEL"),
    "openai": ("OPENAI_API_KEY", "NOTES_OPENAI_MODEL"),
    "groq": ("GROQ_API_KEY", "NOTES_GROQ_MODEL"),
    "huggingface": ("HUGGINGFACE_API_KEY", "NOTES_HF_MODEL"),
}

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_TIMEOUT_S = 40


class ProviderError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def _error_message(payload: str, status: int) -> str:
    try:
        parsed = json.loads(payload)
    except ValueError:
        return payload or f"HTTP {status}"
    err = parsed.get("error") if isinstance(parsed, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    if isinstance(err, str) and err:
        return err
    return payload or f"HTTP {status}"


def _http_post(url: str, headers: Dict[str, str], data: Dict[str, Any], timeout: Optional[int] = None) -> Any:
    body = json.dumps(data).encode("utf-8")
    hdrs = {"User-Agent": f"meeting-intel/{__version__} python-urllib", **headers}
    req = request.Request(url, data=body, headers=hdrs, method="POST")
    if os.getenv("NOTES_SSL_NO_VERIFY"):
        ctx = ssl._create_unverified_context()  # type: ignore[attr-defined]
    else:
        ctx = ssl.create_default_context()
    try:
        with request.urlopen(req, context=ctx, timeout=timeout or DEFAULT_TIMEOUT_S) as resp:
            raw = resp.read()
            return json.loads(raw.decode("utf-8"))
    except error.HTTPError as e:
        try:
            payload = e.read().decode("utf-8")
        except Exception:
            payload = str(e)
        raise ProviderError(_error_message(payload, e.code), status=e.code)
    except error.URLError as e:
        raise ProviderError(f"Could not reach provider: {e.reason}")
    except (TimeoutError, socket.timeout):
        raise ProviderError("Provider request timed out")
    except (OSError, http.client.HTTPException) as e:
        raise ProviderError(f"Provider connection failed: {e}")
    except ValueError as e:
        raise ProviderError(f"Provider returned invalid JSON: {e}")


def api_key(provider: str) -> Optional[str]:
    env = _ENV.get(provider)
    if not env:
        return None
    key = os.getenv(env[0])
    if not key and provider == "huggingface":
        key = os.getenv("HF_API_TOKEN")
    return key or None


def env_names(provider: str) -> Tuple[str, str]:
    """(api key env var, model env var) for a provider."""
    return _ENV[provider]


def model_for(provider: str) -> str:
    env = _ENV.get(provider)
    if provider == "anthropic":
        # legacy name kept for existing deployments
        return os.getenv(env[1]) or os.getenv("CLAUDE_SUMMARY_MODEL") or DEFAULT_MODELS[provider]
    return (env and os.getenv(env[1])) or DEFAULT_MODELS.get(provider, "")


def provider_and_model() -> Tuple[str, Optional[str]]:
    """Resolve the active provider.

    ``NOTES_SUMMARY_PROVIDER`` may be auto|anthropic|openai|groq|huggingface.
    In auto mode the first provider with a configured key wins; the result is
    ("none", None) when no key is configured at all.
    """
    provider = (os.getenv("NOTES_SUMMARY_PROVIDER") or "auto").strip().lower()
    if provider in PROVIDERS:
        return provider, model_for(provider)
    for candidate in PROVIDERS:
        if api_key(candidate):
            return candidate, model_for(candidate)
    return "none", None


def is_configured() -> bool:
    provider, _ = provider_and_model()
    return provider != "none" and api_key(provider) is not None


def _anthropic_call(
    system: str, user: str, model: str, max_tokens: int, temperature: float, timeout: Optional[int] = None
) -> str:
    key = api_key("anthropic")
    if not key:
        raise ProviderError("Missing Anthropic API key.")
    base = os.getenv("ANTHROPIC_API_BASE") or "https://api.anthropic.com/v1"
    res = _http_post(
        f"{base.rstrip('/')}/messages",
        headers={
            "Content-Type": "application/json",
            "x-api-key": key,
            "anthropic-version": ANTHROPIC_VERSION,
        },
        data={
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        },
        timeout=timeout,
    )
    content = (res.get("content") or [{}])[0].get("text") if isinstance(res, dict) else None
    if not content or not isinstance(content, str):
        raise ProviderError("Anthropic API returned an unexpected response format.")
    return content


def _chat_completions_call(
    provider: str,
    messages: List[Dict[str, str]],
    model: str,
    max_tokens: int,
    temperature: float,
    timeout: Optional[int] = None,
) -> str:
    key = api_key(provider)
    if not key:
        raise ProviderError(f"Missing {provider} API key.")
    if provider == "groq":
        base = os.getenv("GROQ_API_BASE") or "https://api.groq.com/openai/v1"
    else:
        base = os.getenv("OPENAI_API_BASE") or "https://api.openai.com/v1"
    res = _http_post(
        f"{base.rstrip('/')}/chat/completions",
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {key}",
        },
        data={"model": model, "messages": messages, "temperature": temperature, "max_tokens": max_tokens},
        timeout=timeout,
    )
    content = (
        res.get("choices", [{}])[0]
        .get("message", {})
        .get("content", "")
        .strip()
    ) if isinstance(res, dict) else ""
    if not content:
        raise ProviderError(f"{provider} API returned an empty response.")
    return content


def _huggingface_call(text: str, model: str, timeout: Optional[int] = None) -> str:
    key = api_key("huggingface")
    if not key:
        raise ProviderError("Missing Hugging Face API key.")
    base = os.getenv("HF_API_BASE") or "https://api-inference.huggingface.co/models"
    res = _http_post(
        f"{base.rstrip('/')}/{model}",
        headers={"Content-Type": "application/json", "Authorization": f"Bearer {key}"},
        data={"inputs": text, "parameters": {"max_length": 180, "min_length": 30, "do_sample": False}},
        timeout=timeout,
    )
    # Inference API returns [{"summary_text": "..."}]; errors come back as {"error": "..."}
    if isinstance(res, dict) and res.get("error"):
        raise ProviderError(str(res["error"]))
    if isinstance(res, list) and res and isinstance(res[0], dict):
        summary = res[0].get("summary_text") or res[0].get("generated_text") or ""
        if summary.strip():
            return summary.strip()
    raise ProviderError("Hugging Face API returned an unexpected response format.")


def complete(
    system: str,
    user: str,
    max_tokens: int = 800,
    temperature: float = 0.1,
    timeout: Optional[int] = None,
) -> Tuple[str, str, str]:
    """Send one system+user exchange to the active provider.

    Returns (content, provider, model). Summarization-only providers receive
    the user text without the system prompt.
    """
    provider, model = provider_and_model()
    if provider == "none" or not model:
        raise ProviderError("No summarization provider configured.")
    logger.info(f"calling provider={provider} model={model}")
    if provider == "anthropic":
        content = _anthropic_call(system, user, model, max_tokens, temperature, timeout=timeout)
    elif provider == "huggingface":
        content = _huggingface_call(user, model, timeout=timeout)
    else:
        content = _chat_completions_call(
            provider,
            [{"role": "system", "content": system}, {"role": "user", "content": user}],
            model,
            max_tokens,
            temperature,
            timeout=timeout,
        )
    return content, provider, model


# ------------------------------- Diagnostics ------------------------------
def diagnostics(timeout: Optional[int] = None) -> Dict[str, Any]:
    """Return info about provider configuration and a tiny probe call result."""
    provider, model = provider_and_model()
    info: Dict[str, Any] = {
        "provider": provider,
        "model": model,
        "keys": {name: bool(api_key(name)) for name in PROVIDERS},
    }
    err: Optional[str] = None
    if provider == "none":
        err = "No provider API key set"
    elif not api_key(provider):
        err = f"{_ENV[provider][0]} not set"
    else:
        try:
            if provider == "huggingface":
                sample = _huggingface_call(
                    "The team met to review the sprint. Everyone agreed the release is on track.",
                    model or "",
                    timeout=timeout,
                )
            elif provider == "anthropic":
                sample = _anthropic_call("Respond with OK only.", "Say OK", model or "", 5, 0.0, timeout=timeout)
            else:
                sample = _chat_completions_call(
                    provider,
                    [
                        {"role": "system", "content": "Respond with OK only."},
                        {"role": "user", "content": "Say OK"},
                    ],
                    model or "",
                    5,
                    0.0,
                    timeout=timeout,
                )
            info["probe_sample"] = sample[:80]
        except ProviderError as e:
            err = str(e)
    info["probe_ok"] = err is None
    if err:
        info["error"] = err
    return info
