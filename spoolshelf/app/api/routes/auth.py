from fastapi import APIRouter

from spoolshelf.app.core.auth import RequireEditToken
from spoolshelf.app.schemas.filament import OkResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/verify", response_model=OkResponse)
async def verify_token(_: str = RequireEditToken()):
    """Confirm the caller's passcode without changing anything."""
    return OkResponse()
