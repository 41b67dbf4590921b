"""
api/routes/v1/auth.py -- Account and session REST endpoints.

Routes:
  POST /api/users    -- register; 201 user
  PUT  /api/users    -- change own email and password (access token)
  POST /api/login    -- password login; access token + refresh token
  POST /api/refresh  -- refresh token (Bearer) -> new access token
  POST /api/revoke   -- revoke refresh token (Bearer); always 204

Security:
  authenticate_user() provides timing equalization -- use it, never inline.
  Refresh failures (unknown / revoked / expired) all surface as one 401 code.
  Cache-Control: no-store on every response that carries a token.
  Renewal does not rotate the refresh token.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError

from api.models import Credentials, LoginRequest, LoginResponse, TokenResponse, UserResponse
from auth.dependencies import access_token_ttl, get_current_user_id, get_refresh_token
from auth.errors import TokenNotFound
from auth.hashing import authenticate_user, hash_password
from auth.models import User
from auth.refresh import RefreshTokenStore
from auth.store import AuthStore
from auth.tokens import issue_access_token

logger = logging.getLogger("chirpy.api.auth")

# Auth policy:
# - POST /api/users:    public
# - PUT  /api/users:    requires access token (get_current_user_id)
# - POST /api/login:    public
# - POST /api/refresh:  requires refresh token (get_refresh_token)
# - POST /api/revoke:   requires refresh token (get_refresh_token)
router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
async def register(request: Request, body: Credentials) -> UserResponse:
    """Create an account. The password is bcrypt-hashed off the event loop."""
    auth_store: AuthStore = request.app.state.auth_store
    rounds = request.app.state.settings.bcrypt_rounds
    hashed = await run_in_threadpool(hash_password, body.password, rounds)
    try:
        user = auth_store.create_user(body.email, hashed)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with that email already exists."},
        ) from exc
    logger.info("Registered user %s", user.id)
    return _user_to_response(user)


@router.put("/users", response_model=UserResponse)
async def update_credentials(
    request: Request,
    body: Credentials,
    user_id: UUID = Depends(get_current_user_id),
) -> UserResponse:
    """Replace the caller's email and password. The target is always the token's subject."""
    auth_store: AuthStore = request.app.state.auth_store
    rounds = request.app.state.settings.bcrypt_rounds
    hashed = await run_in_threadpool(hash_password, body.password, rounds)
    try:
        updated = auth_store.update_user(user_id, body.email, hashed)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with that email already exists."},
        ) from exc
    if updated is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return _user_to_response(updated)


@router.post("/login", response_model=LoginResponse)
async def login(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Authenticate with email and password; return an access token and a refresh token.

    Returns the same error for unknown email and wrong password.
    """
    settings = request.app.state.settings
    auth_store: AuthStore = request.app.state.auth_store
    refresh_tokens: RefreshTokenStore = request.app.state.refresh_tokens

    user = await run_in_threadpool(
        authenticate_user, auth_store, body.email, body.password, settings.bcrypt_rounds
    )

    token = issue_access_token(
        user.id,
        settings.jwt_secret,
        access_token_ttl(request, body.expires_in_seconds),
        issuer=settings.jwt_issuer,
        now=request.app.state.clock(),
    )
    refresh_record = refresh_tokens.issue(user.id)
    response.headers["Cache-Control"] = "no-store"
    logger.info("User %s logged in", user.id)
    return LoginResponse(
        **_user_to_response(user).model_dump(),
        token=token,
        refresh_token=refresh_record.token,
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: Request,
    response: Response,
    raw_token: str = Depends(get_refresh_token),
) -> TokenResponse:
    """Exchange an active refresh token for a new access token.

    The refresh token stays valid -- it is not rotated.
    """
    settings = request.app.state.settings
    refresh_tokens: RefreshTokenStore = request.app.state.refresh_tokens
    auth_store: AuthStore = request.app.state.auth_store

    record = refresh_tokens.lookup(raw_token)
    if auth_store.find_user_by_id(record.user_id) is None:
        raise TokenNotFound("Refresh token owner no longer exists.")

    token = issue_access_token(
        record.user_id,
        settings.jwt_secret,
        access_token_ttl(request),
        issuer=settings.jwt_issuer,
        now=request.app.state.clock(),
    )
    response.headers["Cache-Control"] = "no-store"
    return TokenResponse(token=token)


@router.post("/revoke", status_code=204)
async def revoke(request: Request, raw_token: str = Depends(get_refresh_token)) -> Response:
    """Revoke a refresh token. Unknown and already-revoked tokens also return 204."""
    refresh_tokens: RefreshTokenStore = request.app.state.refresh_tokens
    refresh_tokens.revoke(raw_token)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
        is_chirpy_red=user.is_chirpy_red,
    )
