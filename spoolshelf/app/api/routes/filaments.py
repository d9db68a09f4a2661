import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from spoolshelf.app.core.auth import RequireEditToken
from spoolshelf.app.core.config import settings
from spoolshelf.app.core.database import get_db
from spoolshelf.app.core.errors import NotFoundError
from spoolshelf.app.models.filament import Filament, next_timestamp, utcnow
from spoolshelf.app.schemas.filament import FilamentInput, FilamentResponse, OkResponse
from spoolshelf.app.schemas.inventory import FilamentDraft
from spoolshelf.app.services.normalize import normalize_draft

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/filaments", tags=["filaments"])

# SQLite rowids are signed 64-bit
FilamentId = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]


def _stored_fields(filament_data: FilamentInput) -> dict:
    """Column values for a validated payload, canonicalized if configured."""
    fields = filament_data.model_dump()
    if settings.canonicalize_on_write:
        fields = asdict(normalize_draft(FilamentDraft(**fields)))
    return fields


@router.get("", response_model=list[FilamentResponse])
@router.get("/", response_model=list[FilamentResponse], include_in_schema=False)
async def list_filaments(db: AsyncSession = Depends(get_db)):
    """List every filament, ordered by brand then color."""
    result = await db.execute(select(Filament).order_by(Filament.brand.asc(), Filament.color.asc()))
    return list(result.scalars().all())


@router.post("", response_model=FilamentResponse)
@router.post("/", response_model=FilamentResponse, include_in_schema=False)
async def create_filament(
    filament_data: FilamentInput,
    db: AsyncSession = Depends(get_db),
    _: str = RequireEditToken(),
):
    """Create a new filament entry."""
    now = utcnow()
    filament = Filament(**_stored_fields(filament_data), created_at=now, updated_at=now)
    db.add(filament)
    await db.commit()
    await db.refresh(filament)
    logger.info("Created filament %s (%s %s)", filament.id, filament.brand, filament.color)
    return filament


@router.put("/{filament_id}", response_model=FilamentResponse)
async def update_filament(
    filament_id: FilamentId,
    filament_data: FilamentInput,
    db: AsyncSession = Depends(get_db),
    _: str = RequireEditToken(),
):
    """Replace a filament's editable fields; created_at is never touched."""
    result = await db.execute(select(Filament).where(Filament.id == filament_id))
    filament = result.scalar_one_or_none()
    if not filament:
        raise NotFoundError()

    for field, value in _stored_fields(filament_data).items():
        setattr(filament, field, value)
    filament.updated_at = next_timestamp(filament.updated_at)

    await db.commit()
    await db.refresh(filament)
    logger.info("Updated filament %s", filament.id)
    return filament


@router.delete("/{filament_id}", response_model=OkResponse)
async def delete_filament(
    filament_id: FilamentId,
    db: AsyncSession = Depends(get_db),
    _: str = RequireEditToken(),
):
    """Hard-delete a filament."""
    result = await db.execute(delete(Filament).where(Filament.id == filament_id))
    if result.rowcount == 0:
        raise NotFoundError()

    await db.commit()
    logger.info("Deleted filament %s", filament_id)
    return OkResponse()
