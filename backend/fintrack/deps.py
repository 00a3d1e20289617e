from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .db import get_session
from .schemas import Principal
from .security import PasswordHasher
from .tokens import TokenManager

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
	return request.app.state.settings


def get_token_manager(request: Request) -> TokenManager:
	return request.app.state.tokens


def get_password_hasher(request: Request) -> PasswordHasher:
	return request.app.state.hasher


async def get_current_user(
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
	session: AsyncSession = Depends(get_session),
	tokens: TokenManager = Depends(get_token_manager),
) -> Principal:
	token = credentials.credentials if credentials else None
	return await tokens.validate_access_token(session, token)
