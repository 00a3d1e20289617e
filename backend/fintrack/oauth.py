from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .config import Settings
from .errors import OAuthError
from .models import User

logger = logging.getLogger(__name__)

USER_AGENT = {"User-Agent": "fintrack/1.0"}


@dataclass(frozen=True)
class OAuthProfile:
	email: str
	name: str


class OAuthProvider:
	name = ""
	authorize_url = ""
	token_url = ""
	scope = ""

	def __init__(self, client_id: str, client_secret: str) -> None:
		self.client_id = client_id
		self.client_secret = client_secret

	def authorization_url(self, redirect_uri: str) -> str:
		params = {
			"client_id": self.client_id,
			"redirect_uri": redirect_uri,
			"scope": self.scope,
			"response_type": "code",
		}
		return str(httpx.URL(self.authorize_url, params=params))

	def _json(self, response: httpx.Response) -> Any:
		if response.status_code != 200:
			raise OAuthError(f"{self.name} answered {response.status_code}")
		try:
			return response.json()
		except ValueError as exc:
			raise OAuthError(f"{self.name} returned malformed JSON") from exc

	async def exchange_code(self, client: httpx.AsyncClient, code: str, redirect_uri: str) -> str:
		resp = await client.post(
			self.token_url,
			data={
				"client_id": self.client_id,
				"client_secret": self.client_secret,
				"code": code,
				"redirect_uri": redirect_uri,
				"grant_type": "authorization_code",
			},
			headers={"Accept": "application/json"},
		)
		payload = self._json(resp)
		token = payload.get("access_token") if isinstance(payload, dict) else None
		if not token:
			raise OAuthError(f"{self.name} did not return an access token")
		return token

	async def fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> OAuthProfile:
		raise NotImplementedError

	async def authenticate(self, client: httpx.AsyncClient, code: str, redirect_uri: str) -> OAuthProfile:
		try:
			access_token = await self.exchange_code(client, code, redirect_uri)
			return await self.fetch_profile(client, access_token)
		except httpx.HTTPError as exc:
			raise OAuthError(f"{self.name} request failed: {exc}") from exc


class GitHubProvider(OAuthProvider):
	name = "github"
	authorize_url = "https://github.com/login/oauth/authorize"
	token_url = "https://github.com/login/oauth/access_token"
	api_url = "https://api.github.com"
	scope = "user:email"

	async def fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> OAuthProfile:
		headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/vnd.github+json"}
		user = self._json(await client.get(f"{self.api_url}/user", headers=headers))
		email = user.get("email")
		if not email:
			# Private profile email; ask for the primary verified address instead
			emails = self._json(await client.get(f"{self.api_url}/user/emails", headers=headers))
			email = next(
				(e["email"] for e in emails if e.get("primary") and e.get("verified")),
				None,
			)
		if not email:
			raise OAuthError("github account has no verified email")
		return OAuthProfile(email=email, name=user.get("name") or user.get("login") or email.split("@")[0])


class GoogleProvider(OAuthProvider):
	name = "google"
	authorize_url = "https://accounts.google.com/o/oauth2/v2/auth"
	token_url = "https://oauth2.googleapis.com/token"
	userinfo_url = "https://openidconnect.googleapis.com/v1/userinfo"
	scope = "openid email profile"

	async def fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> OAuthProfile:
		info = self._json(
			await client.get(self.userinfo_url, headers={"Authorization": f"Bearer {access_token}"})
		)
		email = info.get("email")
		if not email:
			raise OAuthError("google account has no email")
		# Accounts are matched by email, so an unverified address must not log anyone in
		if info.get("email_verified") is not True:
			raise OAuthError("google account email is not verified")
		return OAuthProfile(email=email, name=info.get("name") or email.split("@")[0])


def build_providers(settings: Settings) -> Dict[str, OAuthProvider]:
	"""Providers with credentials configured; the others stay disabled."""
	providers: Dict[str, OAuthProvider] = {}
	if settings.github_client_id and settings.github_client_secret:
		providers["github"] = GitHubProvider(settings.github_client_id, settings.github_client_secret)
	if settings.google_client_id and settings.google_client_secret:
		providers["google"] = GoogleProvider(settings.google_client_id, settings.google_client_secret)
	return providers


def http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
	return httpx.AsyncClient(headers=USER_AGENT, timeout=10, transport=transport)


async def upsert_oauth_user(session: AsyncSession, provider: str, profile: OAuthProfile) -> User:
	"""Find the account by email or create a password-less one for this provider."""
	user = await crud.get_user_by_email(session, profile.email)
	if user is None:
		user = await crud.create_user(
			session,
			name=profile.name[:50],
			email=profile.email,
			password_hash="",
			oauth_provider=provider,
		)
		logger.info("Created user %s from %s login", user.id, provider)
	elif not user.oauth_provider:
		await crud.set_oauth_provider(session, user, provider)
	return user
