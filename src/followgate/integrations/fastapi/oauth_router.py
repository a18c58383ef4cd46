"""FastAPI OAuth router — popup-based authorize/callback endpoints for the identity provider."""

import json
import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from followgate.core.oauth import OAuthError, create_oauth_state
from followgate.core.verification import TokenCollisionError
from followgate.integrations.fastapi.cookies import get_session_cookie

if TYPE_CHECKING:
    from followgate.followgate import FollowGate

logger = logging.getLogger("followgate.oauth")

POPUP_MESSAGE_TYPE = "TWITTER_AUTH_COMPLETE"


def _popup_html(payload: dict, target_origin: str, body_text: str) -> str:
    """HTML that posts payload to window.opener and closes the popup."""
    # "</" inside a <script> block would end it early.
    message = json.dumps(payload).replace("</", "<\\/")
    origin = json.dumps(target_origin)
    return (
        "<!DOCTYPE html><html><head><title>Twitter Auth</title><script>"
        f"window.opener && window.opener.postMessage({message}, {origin});"
        "window.close();"
        f"</script></head><body>{body_text}</body></html>"
    )


def create_oauth_router(gate: "FollowGate") -> APIRouter:
    """Create a FastAPI router with the OAuth popup endpoints for gate.provider.

    Registers:
        GET /{provider_name}/auth
        GET /{provider_name}/callback
    """
    provider = gate.provider
    if provider is None:
        raise ValueError("create_oauth_router requires a FollowGate with a provider")

    router = APIRouter(tags=["oauth"])
    config = gate.config
    target_origin = config.frontend_url or "*"

    def _failure(status_code: int) -> HTMLResponse:
        html = _popup_html(
            {"type": POPUP_MESSAGE_TYPE, "success": False, "error": "Authentication failed"},
            target_origin,
            "Authentication failed. Please try again.",
        )
        return HTMLResponse(content=html, status_code=status_code)

    def _redirect_uri(request: Request) -> str:
        if provider.redirect_uri is not None:
            return provider.redirect_uri
        return str(request.url_for("oauth_callback"))

    @router.get(f"/{provider.name}/auth")
    async def oauth_authorize(request: Request):
        """Initiate the OAuth flow — redirect to the provider's consent screen."""
        try:
            oauth_state = create_oauth_state(config, provider_name=provider.name)
            auth_url = provider.get_authorization_url(
                redirect_uri=_redirect_uri(request),
                state=oauth_state.state,
                code_challenge=oauth_state.code_challenge,
            )
        except Exception:
            logger.exception("Error generating auth link")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to start Twitter authentication"},
            )
        return RedirectResponse(url=auth_url, status_code=302)

    @router.get(f"/{provider.name}/callback", name="oauth_callback")
    async def oauth_callback(
        request: Request,
        code: str | None = None,
        state: str | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ):
        """OAuth callback — resolves the account, checks the follow, issues a token."""
        if error:
            logger.warning("Provider returned an error: %s", error_description or error)
            return _failure(400)

        if not code or not state:
            return _failure(400)

        wallet = gate.session_wallet(get_session_cookie(config, request))

        try:
            token, identity, follows = await gate.complete_oauth(
                code=code,
                state=state,
                redirect_uri=_redirect_uri(request),
                wallet_address=wallet,
            )
        except OAuthError as e:
            logger.warning("OAuth callback failed (%s): %s", e.code, e.message)
            return _failure(e.status_code)
        except TokenCollisionError:
            logger.exception("Error during callback")
            return _failure(500)

        logger.info("OAuth complete for @%s (follows=%s)", identity.account_name, follows)
        html = _popup_html(
            {"type": POPUP_MESSAGE_TYPE, "success": True, "token": token},
            target_origin,
            "Authentication successful! You can close this window.",
        )
        return HTMLResponse(content=html)

    return router
