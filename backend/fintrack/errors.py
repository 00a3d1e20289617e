from __future__ import annotations

from datetime import datetime
from typing import Any, Optional


class FinanceError(Exception):
	"""Base error; every subclass maps to one HTTP status."""

	status_code = 500
	message = "Internal server error"

	def __init__(self, message: Optional[str] = None) -> None:
		if message is not None:
			self.message = message
		super().__init__(self.message)

	def to_dict(self) -> dict[str, Any]:
		return {"error": self.message}


class ValidationError(FinanceError):
	status_code = 400
	message = "Invalid value"

	def __init__(self, field: str, message: Optional[str] = None) -> None:
		self.field = field
		super().__init__(message)

	def to_dict(self) -> dict[str, Any]:
		return {"errors": [{"field": self.field, "msg": self.message}]}


class EmailAlreadyRegistered(ValidationError):
	message = "Email already registered"

	def __init__(self) -> None:
		super().__init__("email")


class NotFoundError(FinanceError):
	status_code = 404
	message = "Resource not found"

	def __init__(self, resource: str) -> None:
		super().__init__(f"{resource} not found")


class InvalidCredentials(FinanceError):
	status_code = 401
	message = "Invalid credentials"


class MissingToken(InvalidCredentials):
	message = "Unauthorized, token missing"


class InvalidToken(InvalidCredentials):
	message = "Invalid token"


class UnknownUser(InvalidCredentials):
	message = "Unauthorized"


class ExpiredToken(FinanceError):
	status_code = 403
	message = "Token expired"

	def __init__(self, expired_at: datetime) -> None:
		self.expired_at = expired_at
		super().__init__()

	def to_dict(self) -> dict[str, Any]:
		return {
			"error": self.message,
			"solution": "Use /api/auth/refresh-token with your refresh token to get a new access token",
			"expiredAt": self.expired_at.isoformat(),
		}


class InvalidRefreshToken(FinanceError):
	status_code = 403
	message = "Invalid refresh token, please log in again"


class ExpiredRefreshToken(InvalidRefreshToken):
	message = "Refresh token expired, please log in again"


class OAuthError(FinanceError):
	status_code = 502
	message = "OAuth provider error"
