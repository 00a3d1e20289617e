from __future__ import annotations

import os
import tempfile
import unittest
from dataclasses import replace
from typing import Optional

import httpx
from fastapi.testclient import TestClient

from fintrack.config import Settings
from fintrack.db import Database
from fintrack.main import create_app

TEST_PASSWORD = "secret1"


def make_settings(directory: str, **overrides) -> Settings:
	settings = Settings(
		database_url=f"sqlite+aiosqlite:///{os.path.join(directory, 'test.db')}",
		jwt_secret="test-access-secret",
		bcrypt_rounds=4,
		frontend_url="http://frontend.example.com",
		cors_origins=("http://frontend.example.com",),
		log_level="WARNING",
	)
	return replace(settings, **overrides)


class APITestCase(unittest.TestCase):
	"""Fresh application and database for every test."""

	settings_overrides: dict = {}

	def setUp(self):
		tmp = tempfile.TemporaryDirectory()
		self.addCleanup(tmp.cleanup)
		self.settings = make_settings(tmp.name, **self.settings_overrides)
		self.app = create_app(self.settings, http_transport=self.http_transport())
		self.client = TestClient(self.app)
		self.client.__enter__()
		self.addCleanup(self.client.__exit__, None, None, None)

	def http_transport(self) -> Optional[httpx.AsyncBaseTransport]:
		return None

	def register(self, name: str = "Ana", email: str = "ana@example.com", password: str = TEST_PASSWORD) -> dict:
		res = self.client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
		self.assertEqual(res.status_code, 201, res.text)
		return res.json()

	def auth(self, tokens: dict) -> dict:
		return {"Authorization": f"Bearer {tokens['accessToken']}"}


class StoreTestCase(unittest.IsolatedAsyncioTestCase):
	"""Database-backed tests without the HTTP layer."""

	async def asyncSetUp(self):
		self._tmp = tempfile.TemporaryDirectory()
		self.settings = make_settings(self._tmp.name)
		self.db = Database(self.settings.database_url)
		await self.db.create_all()
		self.session = self.db.sessionmaker()

	async def asyncTearDown(self):
		await self.session.close()
		await self.db.dispose()
		self._tmp.cleanup()
