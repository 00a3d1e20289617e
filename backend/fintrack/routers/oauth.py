from __future__ import annotations

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..db import get_session
from ..deps import get_settings, get_token_manager
from ..errors import NotFoundError, OAuthError
from ..oauth import OAuthProvider, http_client, upsert_oauth_user
from ..tokens import TokenManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/oauth", tags=["OAuth"])


def _get_provider(request: Request, name: str) -> OAuthProvider:
	provider = request.app.state.oauth_providers.get(name)
	if provider is None:
		raise NotFoundError("OAuth provider")
	return provider


@router.get("/{provider}", summary="Start OAuth Login")
async def oauth_login(provider: str, request: Request):
	oauth_provider = _get_provider(request, provider)
	redirect_uri = str(request.url_for("oauth_callback", provider=provider))
	return RedirectResponse(oauth_provider.authorization_url(redirect_uri), status_code=status.HTTP_302_FOUND)


@router.get("/{provider}/callback", name="oauth_callback", summary="OAuth Callback")
async def oauth_callback(
	provider: str,
	request: Request,
	code: str | None = None,
	session: AsyncSession = Depends(get_session),
	tokens: TokenManager = Depends(get_token_manager),
	settings: Settings = Depends(get_settings),
):
	oauth_provider = _get_provider(request, provider)
	failure = RedirectResponse(f"{settings.frontend_url}/login", status_code=status.HTTP_302_FOUND)
	if not code:
		return failure
	redirect_uri = str(request.url_for("oauth_callback", provider=provider))
	try:
		async with http_client(request.app.state.http_transport) as client:
			profile = await oauth_provider.authenticate(client, code, redirect_uri)
	except OAuthError as exc:
		logger.warning("OAuth login with %s failed: %s", provider, exc)
		return failure

	user = await upsert_oauth_user(session, provider, profile)
	pair = await tokens.issue_token_pair(session, user)
	query = urlencode({"token": pair.access_token, "refreshToken": pair.refresh_token})
	return RedirectResponse(f"{settings.frontend_url}/oauth-success?{query}", status_code=status.HTTP_302_FOUND)
