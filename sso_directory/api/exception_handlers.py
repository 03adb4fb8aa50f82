"""
Exception handlers for converting directory exceptions to HTTP responses.
"""

from typing import TYPE_CHECKING

from fastapi import Request, status
from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from fastapi import FastAPI


def setup_exception_handlers(app: "FastAPI") -> None:
    """Setup exception handlers using decorators.

    Args:
        app: FastAPI application instance
    """
    from sso_directory.exceptions import (
        MalformedResponseError,
        NotFoundError,
        ReadOnlyDirectoryError,
        RemoteServiceError,
        TransportError,
    )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        """Convert NotFoundError to 404 response."""
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc) if str(exc) else "Resource not found"},
        )

    @app.exception_handler(ReadOnlyDirectoryError)
    async def handle_read_only(_: Request, exc: ReadOnlyDirectoryError) -> JSONResponse:
        """Convert ReadOnlyDirectoryError to 405 response."""
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content={"detail": str(exc) if str(exc) else "Directory is read-only"},
        )

    @app.exception_handler(TransportError)
    async def handle_transport_error(_: Request, exc: TransportError) -> JSONResponse:
        """Convert TransportError to 502 response."""
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc) if str(exc) else "SSO service is not reachable"},
        )

    @app.exception_handler(RemoteServiceError)
    async def handle_remote_service_error(_: Request, exc: RemoteServiceError) -> JSONResponse:
        """Convert RemoteServiceError to 502 response."""
        # Don't forward the remote body to clients
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": f"SSO service returned HTTP {exc.status_code}"},
        )

    @app.exception_handler(MalformedResponseError)
    async def handle_malformed_response(_: Request, exc: MalformedResponseError) -> JSONResponse:
        """Convert MalformedResponseError to 502 response."""
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc) if str(exc) else "Invalid response from SSO service"},
        )
