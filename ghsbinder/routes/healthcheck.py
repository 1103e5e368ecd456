from datetime import datetime, timezone

from fastapi import APIRouter, Response

router = APIRouter()


@router.get("/health")
async def healthcheck() -> Response:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
