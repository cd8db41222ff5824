"""API routes for aichatbot."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..agent import describe_error
from ..llm import (
    AIProvider,
    BadRequestError,
    NoProvidersAvailableError,
    ProviderError,
    RateLimitedError,
    UnavailableError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services():
    """Get the global services instance."""
    from .app import get_services as _get_services

    return _get_services()


def _status_for(error: Exception) -> int:
    """HTTP status used to report a provider failure."""
    if isinstance(error, RateLimitedError):
        return 429
    if isinstance(error, BadRequestError):
        return 400
    if isinstance(error, (UnavailableError, NoProvidersAvailableError)):
        return 503
    # Auth problems and unknown failures are upstream faults
    return 502


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    user_id: str
    message: str
    provider: Optional[AIProvider] = None


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""

    response: str
    tokens: int
    cost: float
    model: str
    provider: Optional[AIProvider] = None


class DefaultProviderRequest(BaseModel):
    provider: AIProvider


class DefaultModelRequest(BaseModel):
    model: str


class SettingRequest(BaseModel):
    value: str
    description: Optional[str] = None


# Chat endpoints


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest):
    """Answer one user turn."""
    services = get_services()
    try:
        result = await services.chat.process_message(
            request.user_id, request.message, provider=request.provider
        )
    except (ProviderError, NoProvidersAvailableError) as e:
        raise HTTPException(status_code=_status_for(e), detail=describe_error(e))
    except UnsupportedOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ChatResponse(
        response=result.content,
        tokens=result.tokens,
        cost=result.cost,
        model=result.model,
        provider=result.provider,
    )


@router.delete("/conversations/{user_id}")
async def clear_conversation(user_id: str):
    """Delete a user's stored conversation."""
    services = get_services()
    deleted = await services.chat.clear_history(user_id)
    return {"status": "ok", "deleted": deleted}


# Provider management


@router.get("/providers")
async def provider_status():
    """Current default provider, default models and health."""
    ai_service = get_services().ai_service
    health = await ai_service.health_check_all()
    return {
        "default_provider": ai_service.get_default_provider().value,
        "default_models": {
            provider.value: ai_service.get_default_model(provider) for provider in AIProvider
        },
        "health": health,
    }


@router.put("/providers/default")
async def set_default_provider(request: DefaultProviderRequest):
    """Switch the default provider if it is currently healthy."""
    ai_service = get_services().ai_service
    override = ai_service.env_override()
    if override is not None and override != request.provider:
        raise HTTPException(
            status_code=409,
            detail=f"AI_PROVIDER pins the default provider to {override.value}",
        )

    if not await ai_service.is_provider_available(request.provider):
        raise HTTPException(
            status_code=400,
            detail=f"Provider {request.provider.value} is not available",
        )

    ai_service.set_default_provider(request.provider)
    effective = ai_service.get_default_provider()
    return {
        "status": "ok",
        "default_provider": effective.value,
        "default_model": ai_service.get_default_model(effective),
    }


@router.put("/providers/{provider}/model")
async def set_default_model(provider: AIProvider, request: DefaultModelRequest):
    """Change a provider's default model."""
    ai_service = get_services().ai_service
    try:
        ai_service.set_default_model(request.model, provider)
    except UnsupportedOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "provider": provider.value, "default_model": request.model}


@router.get("/providers/{provider}/models")
async def list_models(provider: AIProvider):
    """List a provider's model catalog."""
    ai_service = get_services().ai_service
    try:
        models = await ai_service.get_models(provider)
    except UnsupportedOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e))

    return {
        "provider": provider.value,
        "default_model": ai_service.get_default_model(provider),
        "models": [
            {"id": model.id, "name": model.name, "description": model.description}
            for model in models
        ],
        "count": len(models),
    }


# Billing


@router.get("/balance")
async def get_balance():
    """OpenRouter account balance plus recorded usage."""
    services = get_services()
    try:
        balance = await services.ai_service.get_balance(AIProvider.OPENROUTER)
    except UnsupportedOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        logger.error(f"Failed to get balance: {e}")
        raise HTTPException(status_code=502, detail=f"Failed to get balance: {e}")

    summary = await services.ledger.summary()
    return {
        "provider": AIProvider.OPENROUTER.value,
        "credits": balance.credits,
        "usage": balance.usage,
        "remaining": balance.remaining,
        "statistics": _summary_to_dict(summary),
    }


@router.get("/usage")
async def get_usage(user_id: Optional[str] = None):
    """Usage totals for today, the last 30 days and all time."""
    summary = await get_services().ledger.summary(user_id)
    return {"user_id": user_id, **_summary_to_dict(summary)}


def _summary_to_dict(summary) -> dict:
    return {
        window: {**aggregate.model_dump(), "average_cost": aggregate.average_cost}
        for window, aggregate in (
            ("today", summary.today),
            ("last_30_days", summary.last_30_days),
            ("all_time", summary.all_time),
        )
    }


# Settings


@router.put("/settings/{key}")
async def put_setting(key: str, request: SettingRequest):
    """Store an admin setting such as max_context_messages."""
    await get_services().store.set_setting(key, request.value, request.description)
    return {"status": "ok", "key": key, "value": request.value}


# Health check


@router.get("/health")
async def health_check():
    """Health check endpoint with configuration diagnostics."""
    from ..config import settings

    # Gather non-secret diagnostics
    config = {
        "ai_provider": settings.ai_provider,
        "openrouter_model": settings.openrouter_model,
        "openai_model": settings.openai_model,
        "openrouter_key_present": bool(settings.openrouter_api_key),
        "openai_key_present": bool(settings.openai_api_key),
    }

    return {
        "status": "ok",
        "service": "aichatbot",
        "config": config,
    }
