import logging
import secrets

from fastapi import Depends, Header, HTTPException, status

from studyquest.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def require_api_key(
    x_api_key: str | None = Header(None, alias="x-api-key"),
    settings: Settings = Depends(get_settings),
) -> bool:
    """Reject quiz requests whose `x-api-key` header does not match API_KEY."""
    provided = x_api_key or ""
    if not secrets.compare_digest(provided.encode(), settings.api_key.encode()):
        logger.warning("quiz API key rejected", extra={"provided": x_api_key is not None})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")
    return True
