from __future__ import annotations

from passlib.context import CryptContext


class PasswordHasher:
	def __init__(self, rounds: int = 12) -> None:
		self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

	def hash(self, password: str) -> str:
		return self._context.hash(password)

	def verify(self, password: str, hashed: str) -> bool:
		# OAuth-only accounts have no password to check against
		if not hashed:
			return False
		return self._context.verify(password, hashed)
