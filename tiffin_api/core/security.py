from typing import Optional
import secrets
from fastapi import Header, HTTPException, status
from tiffin_api.core.config import settings

def require_admin(api_key: Optional[str] = Header(None, alias="X-API-Key")):
    if not api_key or not secrets.compare_digest(api_key, settings.ADMIN_API_KEY):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
