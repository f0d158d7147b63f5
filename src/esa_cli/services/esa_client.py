"""HTTP client for the esa REST API.

Every request carries the bearer token and team configured at construction.
Failures surface as TransportError (network/HTTP layer) or ApiError (the
server's {"error", "message"} body). Nothing is retried here.
"""

from typing import Any, Dict, Optional, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from esa_cli.models.config import EsaConfig
from esa_cli.models.post import (
    CreatedPost,
    EditedPost,
    EditedPostResult,
    NewPost,
    Post,
    PostContent,
    PostPage,
    SearchQuery,
)
from esa_cli.models.team import Team
from esa_cli.services.exceptions import ApiError, TransportError

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)


class EsaClient:
    """Synchronous esa API client for a single team."""

    def __init__(self, config: EsaConfig, transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the client.

        Args:
            config: esa configuration (team, access token, base URL, timeout)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.config = config
        self.team = config.team
        self.client = httpx.Client(
            base_url=config.base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {config.access_token.get_secret_value()}",
                "Accept": "application/json",
            },
            timeout=config.timeout,
            transport=transport,
        )

    def __enter__(self) -> "EsaClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    @property
    def _posts_path(self) -> str:
        return f"/teams/{self.team}/posts"

    def get_team(self) -> Team:
        """Fetch team information."""
        response = self._request("GET", f"/teams/{self.team}")
        return self._parse(response, Team)

    def get_post(self, number: int) -> Post:
        """Fetch a single post by number."""
        response = self._request("GET", f"{self._posts_path}/{number}")
        post = self._parse(response, Post)
        logger.info("post_fetched", number=post.number, revision=post.revision_number)
        return post

    def list_posts(self, query: Optional[SearchQuery] = None) -> PostPage:
        """List or search posts.

        Args:
            query: Search query; None lists the most recently updated posts
        """
        params = query.to_params() if query else {}
        response = self._request("GET", self._posts_path, params=params)
        page = self._parse(response, PostPage)
        logger.info("posts_listed", count=len(page.posts), total=page.total_count, page=page.page)
        return page

    def create_post(
        self,
        content: PostContent,
        wip: bool = True,
        message: Optional[str] = None,
    ) -> CreatedPost:
        """Create a post from parsed editor content.

        Args:
            content: Parsed name, body, tags and category
            wip: Create as work in progress
            message: Optional change message
        """
        new_post = NewPost.from_content(content, wip=wip, message=message)
        response = self._request(
            "POST", self._posts_path, json={"post": new_post.model_dump(exclude_none=True)}
        )
        created = self._parse(response, CreatedPost)
        logger.info("post_created", number=created.number, wip=created.wip)
        return created

    def edit_post(self, number: int, edited: EditedPost) -> EditedPostResult:
        """Update a post.

        The payload's original_revision lets the server detect that the post
        changed since it was fetched; the result's `overlapped` flag reports it.
        """
        response = self._request(
            "PATCH",
            f"{self._posts_path}/{number}",
            json={"post": edited.to_payload()},
        )
        result = self._parse(response, EditedPostResult)
        if result.overlapped:
            logger.warning("post_edit_overlapped", number=number, revision=result.revision_number)
        logger.info("post_edited", number=number, revision=result.revision_number)
        return result

    def delete_post(self, number: int) -> None:
        """Delete a post."""
        self._request("DELETE", f"{self._posts_path}/{number}")
        logger.info("post_deleted", number=number)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map failures to esa-cli exceptions.

        Raises:
            TransportError: On network or protocol errors
            ApiError: On non-2xx responses
        """
        logger.debug("esa_request", method=method, path=path, params=kwargs.get("params"))
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("esa_request_timeout", method=method, path=path, error=str(e))
            raise TransportError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            logger.error("esa_request_failed", method=method, path=path, error=str(e))
            raise TransportError(f"HTTP Error: {e}") from e

        logger.debug("esa_response", method=method, path=path, status=response.status_code)
        if response.is_success:
            return response

        error = _error_from_response(response)
        logger.error(
            "esa_api_error",
            method=method,
            path=path,
            status=response.status_code,
            code=error.code,
            message=error.message,
        )
        raise error

    def _parse(self, response: httpx.Response, model: Type[T]) -> T:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("esa_invalid_response", model=model.__name__, error=str(e))
            raise ApiError(
                "invalid_response",
                f"unexpected response for {model.__name__}: {e}",
                status_code=response.status_code,
            ) from e


def _error_from_response(response: httpx.Response) -> ApiError:
    """Build an ApiError from an error response body."""
    try:
        body: Dict[str, Any] = response.json()
    except ValueError:
        body = {}

    if isinstance(body, dict) and "error" in body:
        return ApiError(
            str(body["error"]),
            str(body.get("message", "")),
            status_code=response.status_code,
        )

    return ApiError(
        f"http_{response.status_code}",
        response.text or response.reason_phrase,
        status_code=response.status_code,
    )
