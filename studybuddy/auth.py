from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

# API key guarding all /api endpoints; configured via STUDYBUDDY_API_KEY
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(request: Request, api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    expected = request.app.state.config.api_key
    if not api_key or api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key
