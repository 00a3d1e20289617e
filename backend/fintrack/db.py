from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
	pass


def utcnow() -> datetime:
	"""Current time as a naive UTC datetime, the form every timestamp is stored in."""
	return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
	if value.tzinfo is None:
		return value
	return value.astimezone(timezone.utc).replace(tzinfo=None)


class Database:
	"""Engine and session factory, built once per application."""

	def __init__(self, url: str, *, echo: bool = False) -> None:
		self.url = url
		self.engine = create_async_engine(
			url,
			echo=echo,
			future=True,
		)
		self.sessionmaker = async_sessionmaker(
			bind=self.engine,
			expire_on_commit=False,
			autoflush=False,
			class_=AsyncSession,
		)

	async def create_all(self) -> None:
		# Import models here to ensure metadata is available
		from . import models  # noqa: F401

		async with self.engine.begin() as conn:
			await conn.run_sync(Base.metadata.create_all)

	async def dispose(self) -> None:
		await self.engine.dispose()

	@asynccontextmanager
	async def session(self) -> AsyncGenerator[AsyncSession, None]:
		async with self.sessionmaker() as session:
			yield session


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
	async with request.app.state.db.session() as session:
		yield session


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
	db: Database = app.state.db
	await db.create_all()
	logger.info("Database ready at %s", db.engine.url.render_as_string(hide_password=True))
	yield
	await db.dispose()
	logger.info("Database connections closed")
