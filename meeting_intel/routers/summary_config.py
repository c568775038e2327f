from __future__ import annotations

import os
from typing import Optional, Dict, Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ..services import llm
from ..state import State, get_state


class SummaryConfigRequest(BaseModel):
    provider: Optional[str] = Field(default=None, description="auto|anthropic|openai|groq|huggingface")
    api_key: Optional[str] = Field(default=None, description="API key for the selected provider")
    model: Optional[str] = Field(default=None, description="Model id for the selected provider")
    demo_mode: Optional[bool] = Field(default=None, description="Force heuristic-only reports")


router = APIRouter(tags=["summary-config"])


def _set_env(name: str, value: str) -> None:
    value = value.strip()
    if value:
        os.environ[name] = value
    else:
        os.environ.pop(name, None)


@router.post("/summary_config")
def v1_summary_config(payload: SummaryConfigRequest, request: Request) -> Dict[str, Any]:
    if payload.provider is not None:
        provider = payload.provider.strip().lower()
        if provider and provider != "auto" and provider not in llm.PROVIDERS:
            raise HTTPException(status_code=400, detail=f"Unknown provider: {payload.provider}")
        _set_env("NOTES_SUMMARY_PROVIDER", provider)

    current, _ = llm.provider_and_model()
    if payload.api_key is not None or payload.model is not None:
        if current not in llm.PROVIDERS:
            raise HTTPException(status_code=400, detail="Select a provider before setting a key or model")
        key_env, model_env = llm.env_names(current)
        if payload.api_key is not None:
            _set_env(key_env, payload.api_key)
        if payload.model is not None:
            _set_env(model_env, payload.model)

    if payload.demo_mode is not None:
        # Live settings so the next request sees it
        request.app.state.settings.demo_mode = bool(payload.demo_mode)

    provider, model_hint = llm.provider_and_model()
    return {
        "ok": True,
        "provider": provider,
        "model": model_hint,
        "keys": {name: bool(llm.api_key(name)) for name in llm.PROVIDERS},
        "demo_mode": bool(request.app.state.settings.demo_mode),
    }


@router.get("/summary_diagnostics")
def v1_summary_diagnostics(request: Request, state: State = Depends(get_state)) -> Dict[str, Any]:
    info = llm.diagnostics(timeout=request.app.state.settings.request_timeout_s)
    info["stats"] = state.snapshot()
    return info
