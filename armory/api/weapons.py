import math
import uuid
from datetime import datetime
from typing import Any
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, StrictBool, field_validator
from sqlalchemy.ext.asyncio import AsyncSession
from armory.core.database import get_db
from armory.models.weapon import Weapon
from armory.services import weapons as weapon_service
from armory.services.policy import normalize_weapon_prompt

router = APIRouter(prefix="/v1", tags=["weapons"])


# ─── Request / response models ───────────────────────────────────────────────

def _reject_non_finite(value: Any) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("NaN and Infinity are not valid JSON numbers")
    if isinstance(value, dict):
        for item in value.values():
            _reject_non_finite(item)
    elif isinstance(value, list):
        for item in value:
            _reject_non_finite(item)


class CreateWeaponRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    prompt: str
    owner_id: str | None = None
    model_url: str | None = None
    model_path: str | None = None
    bug_level: float | None = None
    pitch_text: str | None = None
    sale_success: StrictBool | None = None
    tripo_task_id: str | None = None
    metadata: Any | None = None
    share: StrictBool | None = None

    @field_validator("metadata")
    @classmethod
    def finite_metadata(cls, value: Any) -> Any:
        _reject_non_finite(value)
        return value


class WeaponResponse(BaseModel):
    id: uuid.UUID
    owner_id: str | None = None
    prompt: str
    model_url: str | None = None
    model_path: str | None = None
    bug_level: float | None = None
    pitch_text: str | None = None
    sale_success: bool | None = None
    tripo_task_id: str | None = None
    metadata: Any | None = None
    share_id: uuid.UUID | None = None
    created_at: datetime
    shared_at: datetime | None = None

    @classmethod
    def from_weapon(cls, weapon: Weapon) -> "WeaponResponse":
        return cls(
            id=weapon.id,
            owner_id=weapon.owner_id,
            prompt=weapon.prompt,
            model_url=weapon.model_url,
            model_path=weapon.model_path,
            bug_level=weapon.bug_level,
            pitch_text=weapon.pitch_text,
            sale_success=weapon.sale_success,
            tripo_task_id=weapon.tripo_task_id,
            metadata=weapon.metadata_,
            share_id=weapon.share_id,
            created_at=weapon.created_at,
            shared_at=weapon.shared_at,
        )


class SharedWeaponResponse(BaseModel):
    """Public view of a shared weapon; owner and internal asset fields stay private."""
    id: uuid.UUID
    prompt: str
    model_url: str | None = None
    bug_level: float | None = None
    pitch_text: str | None = None
    sale_success: bool | None = None
    metadata: Any | None = None
    created_at: datetime
    shared_at: datetime | None = None

    @classmethod
    def from_weapon(cls, weapon: Weapon) -> "SharedWeaponResponse":
        return cls(
            id=weapon.id,
            prompt=weapon.prompt,
            model_url=weapon.model_url,
            bug_level=weapon.bug_level,
            pitch_text=weapon.pitch_text,
            sale_success=weapon.sale_success,
            metadata=weapon.metadata_,
            created_at=weapon.created_at,
            shared_at=weapon.shared_at,
        )


# ─── POST /v1/weapons ────────────────────────────────────────────────────────

@router.post("/weapons", response_model=WeaponResponse)
async def create_weapon(
    payload: CreateWeaponRequest,
    db: AsyncSession = Depends(get_db),
):
    prompt = normalize_weapon_prompt(payload.prompt)
    weapon = await weapon_service.create_weapon(
        db=db,
        prompt=prompt,
        owner_id=payload.owner_id,
        model_url=payload.model_url,
        model_path=payload.model_path,
        bug_level=payload.bug_level,
        pitch_text=payload.pitch_text,
        sale_success=payload.sale_success,
        tripo_task_id=payload.tripo_task_id,
        metadata=payload.metadata,
        share=bool(payload.share),
    )
    return WeaponResponse.from_weapon(weapon)


# ─── GET /v1/weapons/{weapon_id} ─────────────────────────────────────────────

@router.get("/weapons/{weapon_id}", response_model=WeaponResponse)
async def get_weapon(weapon_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    weapon = await weapon_service.get_weapon(db, weapon_id)
    return WeaponResponse.from_weapon(weapon)


# ─── POST /v1/weapons/{weapon_id}/share ──────────────────────────────────────

@router.post("/weapons/{weapon_id}/share", response_model=WeaponResponse)
async def share_weapon(weapon_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Idempotent: a weapon that is already shared keeps its share_id and shared_at."""
    weapon = await weapon_service.share_weapon(db, weapon_id)
    return WeaponResponse.from_weapon(weapon)


# ─── GET /v1/share/{share_id} ────────────────────────────────────────────────

@router.get("/share/{share_id}", response_model=SharedWeaponResponse)
async def get_shared_weapon(share_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    weapon = await weapon_service.get_shared_weapon(db, share_id)
    return SharedWeaponResponse.from_weapon(weapon)
