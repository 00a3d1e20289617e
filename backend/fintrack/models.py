from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from .db import Base, as_naive_utc, utcnow
from .errors import ValidationError

MOVEMENT_TYPES = ("income", "expense")
CURRENCIES = ("$", "S/", "€", "£", "R$")
DEFAULT_CURRENCY = "$"
FREQUENCIES = ("daily", "weekly", "monthly")
OAUTH_PROVIDERS = ("google", "github")
# Upper bound of a Numeric(14, 2) column
MAX_AMOUNT = 10**12


def _check_length(field: str, value: Optional[str], limit: int) -> Optional[str]:
	if value is None:
		return None
	value = value.strip()
	if len(value) > limit:
		raise ValidationError(field, f"{field} must be at most {limit} characters")
	return value


def _check_positive(field: str, value: Optional[float]) -> float:
	if value is None or not math.isfinite(value) or value <= 0:
		raise ValidationError(field, f"{field} must be greater than 0")
	if value >= MAX_AMOUNT:
		raise ValidationError(field, f"{field} must be less than {MAX_AMOUNT}")
	# Stored as Numeric(14, 2); anything finer would be rounded away
	if abs(round(value, 2) - value) > 1e-9:
		raise ValidationError(field, f"{field} must have at most 2 decimal places")
	return value


class User(Base):
	__tablename__ = "users"

	id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
	name: Mapped[str] = mapped_column(String(50), nullable=False)
	email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
	# Empty for accounts created through OAuth
	password_hash: Mapped[str] = mapped_column(String(255), nullable=False, default="")
	oauth_provider: Mapped[Optional[str]] = mapped_column(String(20))
	# Single active refresh token; a new login replaces it
	refresh_token: Mapped[Optional[str]] = mapped_column(Text)
	created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

	movements: Mapped[list["Movement"]] = relationship(
		back_populates="user", cascade="all, delete-orphan"
	)
	alerts: Mapped[list["Alert"]] = relationship(
		back_populates="user", cascade="all, delete-orphan"
	)

	@validates("name")
	def _validate_name(self, key: str, value: str) -> str:
		value = _check_length(key, value, 50) or ""
		if not value:
			raise ValidationError(key, "name is required")
		return value

	@validates("email")
	def _validate_email(self, key: str, value: str) -> str:
		value = (value or "").strip().lower()
		if not value:
			raise ValidationError(key, "email is required")
		return value

	@validates("oauth_provider")
	def _validate_provider(self, key: str, value: Optional[str]) -> Optional[str]:
		if value is not None and value not in OAUTH_PROVIDERS:
			raise ValidationError(key, f"Unknown OAuth provider: {value}")
		return value


class Movement(Base):
	__tablename__ = "movements"
	__table_args__ = (CheckConstraint("amount > 0", name="ck_movements_amount_positive"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

	type: Mapped[str] = mapped_column(String(10), nullable=False)  # income | expense
	amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)
	currency: Mapped[str] = mapped_column(String(3), nullable=False, default=DEFAULT_CURRENCY)
	category: Mapped[Optional[str]] = mapped_column(String(50))
	description: Mapped[Optional[str]] = mapped_column(String(200))
	date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True, default=utcnow)

	user: Mapped["User"] = relationship(back_populates="movements")

	@validates("type")
	def _validate_type(self, key: str, value: str) -> str:
		if value not in MOVEMENT_TYPES:
			raise ValidationError(key, "Invalid type")
		return value

	@validates("amount")
	def _validate_amount(self, key: str, value: float) -> float:
		return _check_positive(key, value)

	@validates("currency")
	def _validate_currency(self, key: str, value: str) -> str:
		if value not in CURRENCIES:
			raise ValidationError(key, "Invalid currency")
		return value

	@validates("category")
	def _validate_category(self, key: str, value: Optional[str]) -> Optional[str]:
		return _check_length(key, value, 50)

	@validates("description")
	def _validate_description(self, key: str, value: Optional[str]) -> Optional[str]:
		return _check_length(key, value, 200)

	@validates("date")
	def _validate_date(self, key: str, value: datetime) -> datetime:
		if value is None:
			raise ValidationError(key, "date is required")
		return as_naive_utc(value)


class Alert(Base):
	__tablename__ = "alerts"
	__table_args__ = (CheckConstraint("threshold > 0", name="ck_alerts_threshold_positive"),)

	id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)

	threshold: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False)
	frequency: Mapped[str] = mapped_column(String(10), nullable=False)  # daily | weekly | monthly
	# Written by the notification dispatcher, never by the evaluator
	last_sent: Mapped[Optional[datetime]] = mapped_column(DateTime, default=None)
	active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
	created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

	user: Mapped["User"] = relationship(back_populates="alerts")

	@validates("threshold")
	def _validate_threshold(self, key: str, value: float) -> float:
		return _check_positive(key, value)

	@validates("frequency")
	def _validate_frequency(self, key: str, value: str) -> str:
		if value not in FREQUENCIES:
			raise ValidationError(key, "Invalid frequency")
		return value
