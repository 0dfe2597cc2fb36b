from fastapi import Header, HTTPException
from duck_login.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    Guards the login routes when the panel is exposed beyond localhost.
    With API_KEY unset every caller is let through; otherwise the
    x-api-key header must equal it.
    """
    if not settings.API_KEY:
        return
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")
