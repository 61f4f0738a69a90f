from fastapi import Depends, Query, Request, Security
from fastapi.security import APIKeyHeader

from blog_api.auth import AuthUser, SessionAuthenticator
from blog_api.config import settings

# Shows up in Swagger as an "Authorize" header field; the value is
# validated by SessionAuthenticator, not by FastAPI.
bearer_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="JWT token in the form `Bearer {token}`",
)


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination
    query parameters.

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    page_size:
        Number of items per page (``pageSize`` in the query string),
        clamped to ``settings.MAX_PAGE_SIZE``.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            le=100,
            alias="pageSize",
            description="Number of items returned per page (max 100).",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)


def get_authenticator(request: Request) -> SessionAuthenticator:
    """Return the authenticator built by the application lifespan."""
    return request.app.state.authenticator


async def get_current_user(
    authorization: str | None = Security(bearer_header),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> AuthUser:
    return await authenticator.authenticate(authorization)
