from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import auth, schemas
from ..db import get_session
from ..deps import get_current_user, get_password_hasher, get_token_manager
from ..security import PasswordHasher
from ..tokens import TokenManager

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=schemas.TokenPairRead, status_code=status.HTTP_201_CREATED, summary="Register")
async def register(
	payload: schemas.UserCreate,
	session: AsyncSession = Depends(get_session),
	hasher: PasswordHasher = Depends(get_password_hasher),
	tokens: TokenManager = Depends(get_token_manager),
):
	return await auth.register_user(session, hasher, tokens, payload)


@router.post("/login", response_model=schemas.TokenPairRead, summary="Login")
async def login(
	payload: schemas.UserLogin,
	session: AsyncSession = Depends(get_session),
	hasher: PasswordHasher = Depends(get_password_hasher),
	tokens: TokenManager = Depends(get_token_manager),
):
	return await auth.login_user(session, hasher, tokens, payload)


@router.post("/refresh-token", response_model=schemas.AccessTokenRead, summary="Refresh Access Token")
async def refresh_token(
	payload: schemas.RefreshRequest,
	session: AsyncSession = Depends(get_session),
	tokens: TokenManager = Depends(get_token_manager),
):
	return await tokens.refresh_access_token(session, payload.refresh_token)


@router.get("/me", response_model=schemas.Principal, summary="Current User")
async def me(user: schemas.Principal = Depends(get_current_user)):
	return user
