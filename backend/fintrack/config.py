from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./fintrack.db"
DEFAULT_JWT_SECRET = "dev-secret-change-me"
DEFAULT_FRONTEND_URL = "http://localhost:5173"


def _split_csv(value: str) -> tuple[str, ...]:
	return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
	database_url: str = DEFAULT_DATABASE_URL
	jwt_secret: str = DEFAULT_JWT_SECRET
	jwt_refresh_secret: Optional[str] = None
	access_token_expire_minutes: int = 15
	refresh_token_expire_days: int = 7
	bcrypt_rounds: int = 12
	frontend_url: str = DEFAULT_FRONTEND_URL
	cors_origins: tuple[str, ...] = field(default=(DEFAULT_FRONTEND_URL,))
	github_client_id: Optional[str] = None
	github_client_secret: Optional[str] = None
	google_client_id: Optional[str] = None
	google_client_secret: Optional[str] = None
	log_level: str = "INFO"

	@property
	def refresh_secret(self) -> str:
		"""Signing key for refresh tokens, derived from the access key when not set."""
		if self.jwt_refresh_secret:
			return self.jwt_refresh_secret
		return hashlib.sha256(f"{self.jwt_secret}:refresh".encode()).hexdigest()

	@classmethod
	def from_env(cls) -> "Settings":
		load_dotenv()
		frontend_url = os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL).rstrip("/")
		jwt_secret = os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET
		if jwt_secret == DEFAULT_JWT_SECRET:
			logger.warning("JWT_SECRET is not set, using the development secret")
		return cls(
			database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
			jwt_secret=jwt_secret,
			jwt_refresh_secret=os.getenv("JWT_REFRESH_SECRET") or None,
			access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")),
			refresh_token_expire_days=int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")),
			bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
			frontend_url=frontend_url,
			cors_origins=_split_csv(os.getenv("CORS_ORIGINS", frontend_url)),
			github_client_id=os.getenv("GITHUB_CLIENT_ID") or None,
			github_client_secret=os.getenv("GITHUB_CLIENT_SECRET") or None,
			google_client_id=os.getenv("GOOGLE_CLIENT_ID") or None,
			google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET") or None,
			log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
		)
