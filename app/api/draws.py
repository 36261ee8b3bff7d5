from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.config import settings
from app.core.enums import RarityTier, RewardCategory
from app.core.exceptions import InconsistentStateError
from app.core.security import require_admin
from app.schemas.common import APIResponse
from app.schemas.draw import (
    CollectionProgress,
    DrawOutcome,
    PityProgress,
    QuotaExhausted,
    QuotaStatus,
)
from app.schemas.state import CollectionEntry, StateBundle
from app.services.draw import DrawService, get_draw_service
from app.services.rarity import expected_rates

router = APIRouter(prefix="/draws", tags=["draws"])

Service = Annotated[DrawService, Depends(get_draw_service)]


@router.get("/rates")
async def get_rates() -> APIResponse[dict[RarityTier, float]]:
    """Expected percentage of each rarity for the configured weights."""
    return APIResponse(data=expected_rates(settings.draw_weights))


@router.post("/{user_id}")
async def draw(
    user_id: int,
    service: Service,
    category: Annotated[RewardCategory, Query()] = RewardCategory.TRADITIONAL,
) -> APIResponse[DrawOutcome | QuotaExhausted]:
    result = await service.draw(user_id, category)
    if isinstance(result, QuotaExhausted):
        return APIResponse(data=result, message="No draws left today, come back tomorrow")
    return APIResponse(data=result)


@router.get("/{user_id}/pity")
async def get_pity_progress(user_id: int, service: Service) -> APIResponse[PityProgress]:
    return APIResponse(data=await service.get_pity_progress(user_id))


@router.get("/{user_id}/quota")
async def get_quota_status(user_id: int, service: Service) -> APIResponse[QuotaStatus]:
    return APIResponse(data=await service.get_quota_status(user_id))


@router.get("/{user_id}/progress")
async def get_collection_progress(
    user_id: int, service: Service
) -> APIResponse[CollectionProgress]:
    return APIResponse(data=await service.get_collection_progress(user_id))


@router.get("/{user_id}/collection")
async def get_collection(
    user_id: int,
    service: Service,
    category: Annotated[RewardCategory | None, Query()] = None,
) -> APIResponse[list[CollectionEntry]]:
    return APIResponse(data=await service.get_collection(user_id, category))


@router.post("/{user_id}/collection/{category}/{reward_id}/seen")
async def mark_seen(
    user_id: int, category: RewardCategory, reward_id: str, service: Service
) -> APIResponse[None]:
    if not await service.mark_seen(user_id, category, reward_id):
        raise HTTPException(status_code=404, detail="Card not in collection")
    return APIResponse(message="Card marked as seen")


@router.delete("/{user_id}", dependencies=[Depends(require_admin)])
async def clear_all(user_id: int, service: Service) -> APIResponse[None]:
    await service.clear_all(user_id)
    return APIResponse(message="Card data cleared")


@router.get("/{user_id}/export", dependencies=[Depends(require_admin)])
async def export_state(user_id: int, service: Service) -> APIResponse[StateBundle]:
    return APIResponse(data=await service.export_state(user_id))


@router.put("/{user_id}/import", dependencies=[Depends(require_admin)])
async def import_state(
    user_id: int, bundle: StateBundle, service: Service
) -> APIResponse[None]:
    try:
        await service.import_state(user_id, bundle)
    except InconsistentStateError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return APIResponse(message="Card data imported")
