from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from . import crud, schemas
from .errors import EmailAlreadyRegistered, InvalidCredentials
from .security import PasswordHasher
from .tokens import TokenManager, TokenPair

logger = logging.getLogger(__name__)


async def register_user(
	session: AsyncSession,
	hasher: PasswordHasher,
	tokens: TokenManager,
	payload: schemas.UserCreate,
) -> TokenPair:
	if await crud.get_user_by_email(session, payload.email) is not None:
		raise EmailAlreadyRegistered()
	user = await crud.create_user(
		session,
		name=payload.name,
		email=payload.email,
		password_hash=hasher.hash(payload.password),
	)
	logger.info("Registered user %s", user.id)
	return await tokens.issue_token_pair(session, user)


async def login_user(
	session: AsyncSession,
	hasher: PasswordHasher,
	tokens: TokenManager,
	payload: schemas.UserLogin,
) -> TokenPair:
	user = await crud.get_user_by_email(session, payload.email)
	# Same answer for unknown email and wrong password
	if user is None or not hasher.verify(payload.password, user.password_hash):
		logger.warning("Failed login attempt")
		raise InvalidCredentials()
	logger.info("User %s logged in", user.id)
	return await tokens.issue_token_pair(session, user)
