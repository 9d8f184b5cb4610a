"""OAuth setup endpoints: status, consent URL, code exchange and token reset."""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from ..core.errors import AuthError, ConfigError, VibeLoggerError
from ..core.vibe_logger import VibeLoggerService, get_service
from ..models import AuthCodeRequest, AuthStatusResponse, AuthUrlResponse
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _load_credential(service: VibeLoggerService) -> None:
    """Load the client credential if it is not in memory yet.

    Raises:
        HTTPException: 503 if the credential file is missing or malformed
    """
    if service.token_manager.credential is not None:
        return
    try:
        service.token_manager.load_credential()
    except ConfigError as e:
        raise to_http_exception(e) from e


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(service: VibeLoggerService = Depends(get_service)) -> AuthStatusResponse:
    """Report the authentication state without failing on missing setup."""
    token_manager = service.token_manager
    store = token_manager.store

    if token_manager.credential is None:
        try:
            await service.initialize()
        except ConfigError as e:
            logger.info(f"Auth status requested before setup: {e.message}")
            return AuthStatusResponse(
                state="unconfigured",
                authenticated=False,
                credentials_path=str(store.credentials_path),
                tokens_path=str(store.tokens_path),
            )
        except AuthError as e:
            logger.warning(f"Stored tokens unusable: {e.message}")

    authenticated = token_manager.is_authenticated()
    return AuthStatusResponse(
        state=token_manager.state.value,
        authenticated=authenticated,
        authorization_url=None if authenticated else token_manager.build_authorization_url(),
        credentials_path=str(store.credentials_path),
        tokens_path=str(store.tokens_path),
    )


@router.get("/url", response_model=AuthUrlResponse)
async def authorization_url(
    service: VibeLoggerService = Depends(get_service),
) -> AuthUrlResponse:
    """Get the consent-screen URL to visit for a new authorization code."""
    _load_credential(service)
    return AuthUrlResponse(authorization_url=service.token_manager.build_authorization_url())


@router.post("/code")
async def submit_code(
    request: AuthCodeRequest,
    service: VibeLoggerService = Depends(get_service),
) -> dict[str, Any]:
    """Exchange an authorization code for tokens and store them."""
    _load_credential(service)
    try:
        token_set = await service.token_manager.exchange_authorization_code(request.code)
    except VibeLoggerError as e:
        raise to_http_exception(e) from e

    return {
        "message": "Authentication successful. Tokens stored.",
        "state": service.token_manager.state.value,
        "expiry_date": token_set.expiry_date,
        "has_refresh_token": token_set.refresh_token is not None,
    }


@router.delete("/tokens")
async def reset_tokens(service: VibeLoggerService = Depends(get_service)) -> dict[str, Any]:
    """Delete stored tokens so the next call requires re-authentication."""
    removed = service.token_manager.clear_tokens()
    logger.info(f"Token reset requested (file removed: {removed})")
    return {"message": "Stored tokens cleared", "removed": removed}
