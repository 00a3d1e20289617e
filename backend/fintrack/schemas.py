from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, constr, field_validator
from pydantic.alias_generators import to_camel

from .db import as_naive_utc

MovementType = Literal["income", "expense"]
Currency = Literal["$", "S/", "€", "£", "R$"]
Frequency = Literal["daily", "weekly", "monthly"]


class APIModel(BaseModel):
	"""camelCase on the wire, snake_case in Python."""

	class Config:
		from_attributes = True
		populate_by_name = True
		alias_generator = to_camel


# Auth Schemas
class UserCreate(APIModel):
	name: constr(strip_whitespace=True, min_length=1, max_length=50)
	email: EmailStr
	password: constr(min_length=6)


class UserLogin(APIModel):
	email: EmailStr
	password: constr(min_length=1)


class RefreshRequest(APIModel):
	refresh_token: Optional[str] = None


class TokenPairRead(APIModel):
	access_token: str
	refresh_token: str
	expires_in: int
	token_type: str = "bearer"


class AccessTokenRead(APIModel):
	access_token: str
	expires_in: int
	token_type: str = "bearer"


class Principal(APIModel):
	"""Authenticated user as seen by route handlers; never carries secrets."""

	id: int
	name: str
	email: EmailStr
	oauth_provider: Optional[str] = None
	created_at: datetime

	class Config:
		from_attributes = True
		populate_by_name = True
		alias_generator = to_camel
		frozen = True


# Movement Schemas
class MovementCreate(APIModel):
	type: MovementType
	amount: float = Field(..., gt=0, allow_inf_nan=False)
	currency: Currency = "$"
	category: Optional[constr(strip_whitespace=True, max_length=50)] = None
	description: Optional[constr(strip_whitespace=True, max_length=200)] = None
	date: Optional[datetime] = None

	@field_validator("date")
	@classmethod
	def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
		return as_naive_utc(value) if value is not None else None


class MovementUpdate(APIModel):
	type: Optional[MovementType] = None
	amount: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
	# Empty string means "leave the stored currency alone"
	currency: Optional[Literal["$", "S/", "€", "£", "R$", ""]] = None
	category: Optional[constr(strip_whitespace=True, max_length=50)] = None
	description: Optional[constr(strip_whitespace=True, max_length=200)] = None
	date: Optional[datetime] = None

	@field_validator("date")
	@classmethod
	def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
		return as_naive_utc(value) if value is not None else None


class MovementRead(APIModel):
	id: int
	user_id: int
	type: str
	amount: float
	currency: str
	category: Optional[str]
	description: Optional[str]
	date: datetime


# Alert Schemas
class AlertCreate(APIModel):
	threshold: float = Field(..., gt=0, allow_inf_nan=False)
	frequency: Frequency


class AlertUpdate(APIModel):
	threshold: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
	frequency: Optional[Frequency] = None
	active: Optional[bool] = None


class AlertRead(APIModel):
	id: int
	user_id: int
	threshold: float
	frequency: str
	last_sent: Optional[datetime]
	active: bool
	created_at: datetime


class PeriodRead(APIModel):
	start: datetime
	end: datetime


class TriggeredAlertRead(APIModel):
	alert: AlertRead
	triggered: bool
	total_expenses: float
	period: PeriodRead
	due: bool


class AlertCheckRead(APIModel):
	alerts_checked: int
	triggered_alerts: list[TriggeredAlertRead]


class MessageRead(BaseModel):
	message: str
