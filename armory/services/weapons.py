import functools
import logging
import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import DateTime, Uuid, func, literal, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from armory.core.errors import NotFoundError, StoreError
from armory.models.weapon import Weapon

logger = logging.getLogger(__name__)


def _store_errors(fn):
    """Re-raise any SQLAlchemy failure as StoreError."""
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"{fn.__name__} database error: {e}")
            raise StoreError(f"Database error: {e}") from e
    return wrapper


# ─── Create ──────────────────────────────────────────────────────────────────

@_store_errors
async def create_weapon(
    db: AsyncSession,
    prompt: str,
    owner_id: str | None = None,
    model_url: str | None = None,
    model_path: str | None = None,
    bug_level: float | None = None,
    pitch_text: str | None = None,
    sale_success: bool | None = None,
    tripo_task_id: str | None = None,
    metadata: Any | None = None,
    share: bool = False,
) -> Weapon:
    """
    Insert a new weapon. The prompt is expected to be normalized already.
    With share=True the share fields are filled in by the same INSERT.
    """
    weapon = Weapon(
        owner_id=owner_id,
        prompt=prompt,
        model_url=model_url,
        model_path=model_path,
        bug_level=bug_level,
        pitch_text=pitch_text,
        sale_success=sale_success,
        tripo_task_id=tripo_task_id,
        metadata_=metadata,
        share_id=uuid.uuid4() if share else None,
        shared_at=datetime.now(timezone.utc) if share else None,
    )
    db.add(weapon)
    await db.commit()
    await db.refresh(weapon)
    logger.info(f"Weapon created: {weapon.id} (shared={weapon.is_shared})")
    return weapon


# ─── Read ────────────────────────────────────────────────────────────────────

@_store_errors
async def get_weapon(db: AsyncSession, weapon_id: uuid.UUID) -> Weapon:
    result = await db.execute(select(Weapon).where(Weapon.id == weapon_id))
    weapon = result.scalars().first()
    if weapon is None:
        raise NotFoundError("weapon not found")
    return weapon


@_store_errors
async def get_shared_weapon(db: AsyncSession, share_id: uuid.UUID) -> Weapon:
    result = await db.execute(select(Weapon).where(Weapon.share_id == share_id))
    weapon = result.scalars().first()
    if weapon is None:
        raise NotFoundError("share not found")
    return weapon


# ─── Share ───────────────────────────────────────────────────────────────────

@_store_errors
async def share_weapon(db: AsyncSession, weapon_id: uuid.UUID) -> Weapon:
    """
    Make a weapon public. A single conditional UPDATE keeps existing share
    fields, so concurrent callers all end up with the same share_id.
    """
    stmt = (
        update(Weapon)
        .where(Weapon.id == weapon_id)
        .values(
            share_id=func.coalesce(Weapon.share_id, literal(uuid.uuid4(), Uuid)),
            shared_at=func.coalesce(
                Weapon.shared_at, literal(datetime.now(timezone.utc), DateTime(timezone=True))
            ),
        )
        .returning(Weapon)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    result = await db.execute(stmt)
    weapon = result.scalars().first()
    await db.commit()

    if weapon is None:
        raise NotFoundError("weapon not found")

    logger.info(f"Weapon {weapon_id} shared as {weapon.share_id}")
    return weapon
