"""Access/refresh token lifecycle.

Access tokens are short lived and signed with the access key. Refresh tokens
are long lived, signed with a different key, and the only valid one for a user
is the one currently stored on the user record.
"""
from __future__ import annotations

import hmac
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .config import Settings
from .errors import (
	ExpiredRefreshToken,
	ExpiredToken,
	InvalidRefreshToken,
	InvalidToken,
	MissingToken,
	UnknownUser,
)
from .models import User
from .schemas import Principal

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
	access_token: str
	refresh_token: str
	expires_in: int


@dataclass(frozen=True)
class AccessGrant:
	access_token: str
	expires_in: int


class TokenManager:
	def __init__(
		self,
		access_secret: str,
		refresh_secret: str,
		*,
		access_ttl: timedelta = timedelta(minutes=15),
		refresh_ttl: timedelta = timedelta(days=7),
		algorithm: str = ALGORITHM,
	) -> None:
		if not access_secret or not refresh_secret:
			raise ValueError("Token signing secrets must not be empty")
		if access_secret == refresh_secret:
			raise ValueError("Access and refresh tokens must be signed with different secrets")
		self._keys = {ACCESS: access_secret, REFRESH: refresh_secret}
		self._ttls = {ACCESS: access_ttl, REFRESH: refresh_ttl}
		self.algorithm = algorithm

	@classmethod
	def from_settings(cls, settings: Settings) -> "TokenManager":
		return cls(
			settings.jwt_secret,
			settings.refresh_secret,
			access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
			refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
		)

	@property
	def access_expires_in(self) -> int:
		return int(self._ttls[ACCESS].total_seconds())

	def _encode(self, user_id: int, kind: str) -> str:
		issued_at = datetime.now(timezone.utc)
		claims = {
			"userId": user_id,
			"type": kind,
			# Two tokens minted in the same second must still differ
			"jti": uuid.uuid4().hex,
			"iat": issued_at,
			"exp": issued_at + self._ttls[kind],
		}
		return jwt.encode(claims, self._keys[kind], algorithm=self.algorithm)

	def _decode(self, token: str, kind: str) -> dict[str, Any]:
		"""Verify signature and expiry; raises ExpiredToken or InvalidToken and nothing else."""
		key = self._keys[kind]
		try:
			claims = jwt.decode(token, key, algorithms=[self.algorithm])
		except ExpiredSignatureError:
			try:
				claims = jwt.decode(token, key, algorithms=[self.algorithm], options={"verify_exp": False})
			except JWTError as exc:
				raise InvalidToken() from exc
			raise ExpiredToken(datetime.fromtimestamp(claims["exp"], tz=timezone.utc))
		except JWTError as exc:
			raise InvalidToken() from exc
		if claims.get("type") != kind or not isinstance(claims.get("userId"), int):
			raise InvalidToken()
		return claims

	def create_access_token(self, user_id: int) -> str:
		return self._encode(user_id, ACCESS)

	async def issue_token_pair(self, session: AsyncSession, user: User) -> TokenPair:
		pair = TokenPair(
			access_token=self._encode(user.id, ACCESS),
			refresh_token=self._encode(user.id, REFRESH),
			expires_in=self.access_expires_in,
		)
		await crud.set_refresh_token(session, user, pair.refresh_token)
		return pair

	async def validate_access_token(self, session: AsyncSession, token: str | None) -> Principal:
		if not token:
			raise MissingToken()
		claims = self._decode(token, ACCESS)
		user = await crud.get_user(session, claims["userId"])
		if user is None:
			raise UnknownUser()
		return Principal.model_validate(user)

	async def refresh_access_token(self, session: AsyncSession, refresh_token: str | None) -> AccessGrant:
		if not refresh_token:
			raise MissingToken()
		try:
			claims = self._decode(refresh_token, REFRESH)
		except ExpiredToken as exc:
			raise ExpiredRefreshToken() from exc
		except InvalidToken as exc:
			raise InvalidRefreshToken() from exc
		user = await crud.get_user(session, claims["userId"])
		if user is None or not user.refresh_token:
			raise InvalidRefreshToken()
		if not hmac.compare_digest(user.refresh_token, refresh_token):
			logger.warning("Stale refresh token presented for user %s", user.id)
			raise InvalidRefreshToken()
		return AccessGrant(access_token=self._encode(user.id, ACCESS), expires_in=self.access_expires_in)
