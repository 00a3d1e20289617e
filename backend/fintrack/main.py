from __future__ import annotations

import logging
import os
import time
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .db import Database, lifespan
from .errors import FinanceError
from .oauth import build_providers
from .routers import alerts_router, auth_router, movements_router, oauth_router
from .security import PasswordHasher
from .tokens import TokenManager

logger = logging.getLogger(__name__)

SERVICE_NAME = "Personal Finance API"


def create_app(
	settings: Optional[Settings] = None,
	*,
	http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
	settings = settings or Settings.from_env()
	logging.basicConfig(
		level=settings.log_level,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	app = FastAPI(lifespan=lifespan, title=SERVICE_NAME, version="0.1.0")
	app.state.settings = settings
	app.state.db = Database(settings.database_url)
	app.state.tokens = TokenManager.from_settings(settings)
	app.state.hasher = PasswordHasher(settings.bcrypt_rounds)
	app.state.oauth_providers = build_providers(settings)
	app.state.http_transport = http_transport

	app.add_middleware(
		CORSMiddleware,
		allow_origins=list(settings.cors_origins),
		allow_credentials=True,
		allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
		allow_headers=["Content-Type", "Authorization"],
		max_age=86400,
	)

	@app.middleware("http")
	async def log_requests(request: Request, call_next):
		started = time.perf_counter()
		response = await call_next(request)
		elapsed = (time.perf_counter() - started) * 1000
		logger.info("%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed)
		return response

	@app.exception_handler(FinanceError)
	async def finance_error_handler(request: Request, exc: FinanceError):
		return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

	@app.exception_handler(RequestValidationError)
	async def request_validation_handler(request: Request, exc: RequestValidationError):
		errors = []
		for err in exc.errors():
			# Drop the leading "body"/"query"/"path" part of the location
			loc = [str(part) for part in err.get("loc", ())[1:]]
			errors.append({"field": ".".join(loc), "msg": err.get("msg", "Invalid value")})
		return JSONResponse(status_code=400, content={"errors": errors})

	@app.exception_handler(Exception)
	async def unhandled_error_handler(request: Request, exc: Exception):
		logger.exception("Unhandled error on %s %s", request.method, request.url.path)
		return JSONResponse(status_code=500, content={"message": "Internal server error"})

	app.include_router(auth_router)
	app.include_router(oauth_router)
	app.include_router(movements_router)
	app.include_router(alerts_router)

	@app.get("/health", tags=["Service"])
	async def health():
		return {"status": "ok"}

	@app.get("/", tags=["Service"])
	async def root():
		return {"status": "ok", "service": SERVICE_NAME}

	return app


def run() -> None:
	import uvicorn

	uvicorn.run(
		"fintrack.main:create_app",
		factory=True,
		host=os.getenv("HOST", "0.0.0.0"),
		port=int(os.getenv("PORT", "8000")),
	)
