from __future__ import annotations

from fastapi import APIRouter, HTTPException

from rentflow.core.errors import UnknownProvider
from rentflow.core.providers import ProviderSelectorConfig, get_provider_registry, selectors_for

router = APIRouter(prefix="/providers", tags=["providers"])


def _summary(config: ProviderSelectorConfig) -> dict:
    return {
        "provider_id": config.provider_id,
        "display_name": config.display_name,
        "aliases": list(config.aliases),
        "default_utility_type": config.default_utility_type,
    }


@router.get("")
async def list_providers() -> dict:
    return {"items": [_summary(config) for config in get_provider_registry().list()]}


@router.get("/{provider}/selectors")
async def get_provider_selectors(provider: str) -> dict:
    try:
        config = selectors_for(provider)
    except UnknownProvider as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return config.model_dump(mode="json")
