"""Wallet session cookie helpers for FastAPI endpoints."""

from __future__ import annotations

from fastapi import Request, Response

from followgate.config import FollowGateConfig


def set_session_cookie(config: FollowGateConfig, response: Response, session_token: str) -> None:
    """Set the signed wallet session cookie on the response."""
    c = config.session
    response.set_cookie(
        key=c.cookie_name,
        value=session_token,
        max_age=c.max_age_seconds,
        secure=c.secure,
        httponly=c.httponly,
        samesite=c.samesite,
        path=c.path,
        domain=c.domain,
    )


def get_session_cookie(config: FollowGateConfig, request: Request) -> str | None:
    return request.cookies.get(config.session.cookie_name)
