from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .db import utcnow
from .errors import EmailAlreadyRegistered, NotFoundError
from .models import DEFAULT_CURRENCY, Alert, Movement, User

logger = logging.getLogger(__name__)

# Fields a client may change; everything else is owned by the server.
MOVEMENT_MUTABLE_FIELDS = ("type", "amount", "currency", "category", "description", "date")
MOVEMENT_REQUIRED_FIELDS = ("type", "amount", "date")
ALERT_MUTABLE_FIELDS = ("threshold", "frequency", "active")


# Users
async def get_user(session: AsyncSession, user_id: int) -> Optional[User]:
	return await session.get(User, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
	stmt = select(User).where(User.email == email.strip().lower())
	return (await session.execute(stmt)).scalar_one_or_none()


async def create_user(
	session: AsyncSession,
	*,
	name: str,
	email: str,
	password_hash: str = "",
	oauth_provider: str | None = None,
) -> User:
	user = User(name=name, email=email, password_hash=password_hash, oauth_provider=oauth_provider)
	session.add(user)
	try:
		await session.commit()
	except IntegrityError as exc:
		await session.rollback()
		raise EmailAlreadyRegistered() from exc
	await session.refresh(user)
	return user


async def set_refresh_token(session: AsyncSession, user: User, token: str | None) -> User:
	user.refresh_token = token
	await session.commit()
	return user


async def set_oauth_provider(session: AsyncSession, user: User, provider: str) -> User:
	user.oauth_provider = provider
	await session.commit()
	return user


# Movements
def month_bounds(year: int, month: int | None = None) -> tuple[datetime, datetime]:
	"""Inclusive [start, end] of a calendar month, or of the whole year when month is None."""
	if month is None:
		return datetime(year, 1, 1), datetime(year + 1, 1, 1) - timedelta(microseconds=1)
	start = datetime(year, month, 1)
	if month == 12:
		following = datetime(year + 1, 1, 1)
	else:
		following = datetime(year, month + 1, 1)
	return start, following - timedelta(microseconds=1)


async def list_movements(
	session: AsyncSession,
	user_id: int,
	*,
	year: int | None = None,
	month: int | None = None,
) -> Sequence[Movement]:
	stmt: Select[tuple[Movement]] = select(Movement).where(Movement.user_id == user_id)
	if year is not None:
		start, end = month_bounds(year, month)
		stmt = stmt.where(Movement.date >= start).where(Movement.date <= end)
	stmt = stmt.order_by(Movement.date.desc(), Movement.id.desc())
	result = await session.execute(stmt)
	return result.scalars().all()


async def get_movement(session: AsyncSession, user_id: int, movement_id: int) -> Movement:
	"""Owner-scoped lookup; someone else's movement is indistinguishable from a missing one."""
	stmt = select(Movement).where(Movement.id == movement_id).where(Movement.user_id == user_id)
	movement = (await session.execute(stmt)).scalar_one_or_none()
	if movement is None:
		raise NotFoundError("Movement")
	return movement


async def create_movement(session: AsyncSession, user_id: int, payload: schemas.MovementCreate) -> Movement:
	movement = Movement(
		user_id=user_id,
		type=payload.type,
		amount=payload.amount,
		currency=payload.currency or DEFAULT_CURRENCY,
		category=payload.category,
		description=payload.description,
		date=payload.date or utcnow(),
	)
	session.add(movement)
	await session.commit()
	await session.refresh(movement)
	return movement


async def update_movement(session: AsyncSession, movement: Movement, changes: dict[str, Any]) -> Movement:
	for field in MOVEMENT_MUTABLE_FIELDS:
		if field not in changes:
			continue
		value = changes[field]
		if field == "currency" and not value:
			continue
		if field in MOVEMENT_REQUIRED_FIELDS and value is None:
			continue
		setattr(movement, field, value)
	await session.commit()
	await session.refresh(movement)
	return movement


async def delete_movement(session: AsyncSession, movement: Movement) -> None:
	await session.delete(movement)
	await session.commit()


async def list_expenses_between(
	session: AsyncSession, user_id: int, start: datetime, end: datetime
) -> Sequence[Movement]:
	stmt = (
		select(Movement)
		.where(Movement.user_id == user_id)
		.where(Movement.type == "expense")
		.where(Movement.date >= start)
		.where(Movement.date <= end)
	)
	result = await session.execute(stmt)
	return result.scalars().all()


# Alerts
async def list_alerts(session: AsyncSession, user_id: int, *, active_only: bool = False) -> Sequence[Alert]:
	stmt: Select[tuple[Alert]] = select(Alert).where(Alert.user_id == user_id)
	if active_only:
		stmt = stmt.where(Alert.active.is_(True))
	stmt = stmt.order_by(Alert.id)
	result = await session.execute(stmt)
	return result.scalars().all()


async def get_alert(session: AsyncSession, user_id: int, alert_id: int) -> Alert:
	stmt = select(Alert).where(Alert.id == alert_id).where(Alert.user_id == user_id)
	alert = (await session.execute(stmt)).scalar_one_or_none()
	if alert is None:
		raise NotFoundError("Alert")
	return alert


async def create_alert(session: AsyncSession, user_id: int, payload: schemas.AlertCreate) -> Alert:
	alert = Alert(
		user_id=user_id,
		threshold=payload.threshold,
		frequency=payload.frequency,
		last_sent=None,
		active=True,
	)
	session.add(alert)
	await session.commit()
	await session.refresh(alert)
	return alert


async def update_alert(session: AsyncSession, alert: Alert, changes: dict[str, Any]) -> Alert:
	for field in ALERT_MUTABLE_FIELDS:
		value = changes.get(field)
		if value is None:
			continue
		setattr(alert, field, value)
	await session.commit()
	await session.refresh(alert)
	return alert


async def delete_alert(session: AsyncSession, alert: Alert) -> None:
	await session.delete(alert)
	await session.commit()
