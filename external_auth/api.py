# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""HTTP surface for the external auth flow.

Exposes:
- GET /authorize: redirect to the provider's authorization endpoint
- GET /callback: complete the code exchange and return the linker's result
- GET /providers: supported providers and whether each is configured
- GET /health, GET /readyz: liveness and readiness
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from . import __version__
from .config import load_config
from .errors import ExternalAuthError
from .factory import supported_providers
from .logger import create_logger
from .service import ExternalAuthService

logger = create_logger(name="external_auth.api")


def _http_error(error: ExternalAuthError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail={"error": error.code, "error_description": str(error)},
    )


def _get_service(request: Request) -> ExternalAuthService:
    service: Optional[ExternalAuthService] = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


def create_app(service: Optional[ExternalAuthService] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        service: Pre-built service; when omitted the configuration is loaded
            from the environment on startup

    Returns:
        FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "auth_service", None) is None:
            logger.info("Loading external auth configuration...")
            app.state.auth_service = ExternalAuthService(config=load_config())
        logger.info(
            "External auth service started",
            providers=app.state.auth_service.configured_providers(),
        )
        yield
        logger.info("Shutting down external auth service...")

    app = FastAPI(
        title="External Auth Service",
        version=__version__,
        description="External identity provider authorize and callback flow",
        lifespan=lifespan,
    )
    app.state.auth_service = service

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "healthy", "service": "external-auth", "version": __version__}

    @app.get("/readyz")
    async def readyz(request: Request) -> dict[str, str]:
        """Readiness check endpoint."""
        service = _get_service(request)
        if not service.is_ready():
            raise HTTPException(status_code=503, detail="Service not ready")
        return {"status": "ready"}

    @app.get("/providers")
    async def list_providers(request: Request) -> dict[str, Any]:
        """List supported providers and whether each is configured.

        Example Response:
            {
                "providers": {
                    "descope": {"configured": true},
                    "github": {"configured": false},
                    "google": {"configured": false}
                },
                "configured_count": 1,
                "total_supported": 3
            }
        """
        service = _get_service(request)
        configured = service.configured_providers()
        supported = supported_providers()

        return {
            "providers": {name: {"configured": name in configured} for name in supported},
            "configured_count": len(configured),
            "total_supported": len(supported),
        }

    @app.get("/authorize")
    async def authorize(
        request: Request,
        provider: str = Query(..., description="External provider name"),
        redirect_to: Optional[str] = Query(None, description="Post-login destination"),
        scopes: str = Query("", description="Comma-separated extra scopes"),
        invite_token: Optional[str] = Query(None, description="Invite being redeemed"),
        linking_target_id: Optional[str] = Query(None, description="Account to link the identity to"),
        flow_state_id: Optional[str] = Query(None, description="Identifier of an enclosing flow"),
    ) -> RedirectResponse:
        """Redirect to the provider's authorization endpoint."""
        service = _get_service(request)

        try:
            authorization_url = service.authorize(
                provider=provider,
                redirect_to=redirect_to,
                scopes=scopes,
                invite_token=invite_token,
                linking_target_id=linking_target_id,
                flow_state_id=flow_state_id,
            )
        except ExternalAuthError as e:
            logger.error(f"Authorization failed: {e}", provider=provider, error=e.code)
            raise _http_error(e)

        return RedirectResponse(url=authorization_url, status_code=302)

    @app.get("/callback")
    async def callback(
        request: Request,
        code: Optional[str] = Query(None, description="Authorization code from provider"),
        state: Optional[str] = Query(None, description="Signed OAuth state"),
        error: Optional[str] = Query(None, description="OAuth error reported by provider"),
        error_description: Optional[str] = Query(None, description="OAuth error description"),
    ) -> JSONResponse:
        """Complete the authorization code flow.

        The provider is taken from the verified state, never from the query,
        so a tampered request cannot switch providers mid-flow.
        """
        service = _get_service(request)

        try:
            result = await service.handle_callback(
                code=code,
                state=state,
                error=error,
                error_description=error_description,
            )
        except ExternalAuthError as e:
            logger.error(f"Callback failed: {e}", error=e.code)
            raise _http_error(e)

        return JSONResponse(content=result.linked)

    return app
