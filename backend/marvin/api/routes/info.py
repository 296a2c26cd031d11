"""Static API info."""

from fastapi import APIRouter
from pydantic import BaseModel

from marvin.api.deps import AppSettings
from marvin.schemas.base import ApiResponse

router = APIRouter(prefix="/api", tags=["info"])


class ApiInfo(BaseModel):
    name: str
    version: str
    message: str


@router.get("", response_model=ApiResponse[ApiInfo])
@router.get("/route", response_model=ApiResponse[ApiInfo])
async def api_info(settings: AppSettings):
    """Name and version of the API; needs no authentication."""
    return ApiResponse(
        data=ApiInfo(
            name=settings.app_name,
            version=settings.app_version,
            message="Marvin API ist bereit",
        )
    )
