from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..config import settings
from ..database import CONNECTED, STATE_NAMES

router = APIRouter(prefix="/api", tags=["index"])

@router.get("")
async def index():
    return "All good in here"

@router.get("/health")
async def health(request: Request):
    """Report whether the database answers; 503 when it does not."""
    database = request.app.state.database
    state = database.ping()
    healthy = state == CONNECTED
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "state": STATE_NAMES[state],
            "stateCode": state,
            "name": database.name,
        },
        "environment": {
            "environment": settings.ENVIRONMENT,
            "databaseUrlConfigured": bool(database.url),
        },
    }
    code = status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)
