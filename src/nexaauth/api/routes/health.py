from datetime import datetime, timezone
from fastapi import APIRouter

from nexaauth.api.schemas import HealthResponse


router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc))
