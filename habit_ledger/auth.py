from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
import os

# Shared secret for the local profile's API; set it in the environment in production
API_KEY = os.getenv("HABIT_LEDGER_API_KEY", "change-me")

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

async def verify_api_key(api_key: str = Security(api_key_header)):
    """Reject requests without the configured X-API-Key header"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key
