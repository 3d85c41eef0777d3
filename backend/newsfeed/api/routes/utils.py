from datetime import datetime, timezone
from fastapi import APIRouter

from newsfeed.api.deps import SettingsDep
from newsfeed.core.log_config import recent_errors

router = APIRouter()


@router.get("/health-check")
async def health_check(settings: SettingsDep) -> dict:
    """Report which credentials are configured, without exposing their values"""
    credentials = settings.credential_status()
    return {
        "status": "success" if all(credentials.values()) else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "environmentVariables": {
            name: "SET" if present else "MISSING"
            for name, present in credentials.items()
        },
        "recentErrors": len(recent_errors.records),
    }
