"""Post models for the esa API.

Read models (Post, PostPage, CreatedPost, EditedPostResult) are frozen
snapshots of server responses. Write models (NewPost, EditedPost) are the
request payloads built from editor input.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Kind(str, Enum):
    """Post kind: a reference document or a time-ordered note."""

    STOCK = "stock"
    FLOW = "flow"


class Writer(BaseModel):
    """Author or last editor of a post."""

    myself: bool = Field(..., description="Whether this writer is the authenticated user")
    name: str = Field(..., description="Display name")
    screen_name: str = Field(..., description="Handle")
    icon: str = Field(..., description="Avatar URL")

    model_config = {"frozen": True}


class PostContent(BaseModel):
    """Minimal post data parsed from the editor buffer."""

    name: str = Field(..., description="Post name without category and tags")
    full_name: str = Field(
        ...,
        description="Raw title line as typed (category path, name and ' #tag' suffixes)"
    )
    body_md: Optional[str] = Field(default=None, description="Markdown body")
    tags: List[str] = Field(default_factory=list, description="Tags in the order typed")
    category: Optional[str] = Field(default=None, description="Slash-delimited category path")

    model_config = {"frozen": True}


class OriginalRevision(BaseModel):
    """Revision an edit was based on, used by the server to detect overlapping edits."""

    body_md: Optional[str] = None
    number: Optional[int] = None
    user: Optional[str] = None

    model_config = {"frozen": True}


class NewPost(BaseModel):
    """Request payload for creating a post."""

    name: str
    body_md: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    wip: bool = True
    message: Optional[str] = None

    @classmethod
    def from_content(
        cls, content: PostContent, wip: bool, message: Optional[str] = None
    ) -> "NewPost":
        return cls(
            name=content.name,
            body_md=content.body_md,
            tags=list(content.tags),
            category=content.category,
            wip=wip,
            message=message,
        )


class EditedPost(BaseModel):
    """Request payload for editing a post."""

    name: str
    body_md: Optional[str] = None
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    wip: bool
    message: Optional[str] = None
    original_revision: Optional[OriginalRevision] = None

    def to_payload(self) -> Dict[str, Any]:
        """Render the request body.

        category is always sent; null moves the post to the root category.
        Leaving it out would keep the current one.
        """
        payload = self.model_dump(exclude_none=True)
        payload["category"] = self.category
        return payload


class _PostFields(BaseModel):
    """Fields shared by every post representation the server returns."""

    number: int
    name: str
    full_name: str
    wip: bool
    created_at: datetime
    updated_at: datetime
    url: str
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    revision_number: int
    created_by: Writer
    updated_by: Writer
    kind: Kind
    comments_count: int = 0
    tasks_count: int = 0
    done_tasks_count: int = 0
    stargazers_count: int = 0
    watchers_count: int = 0
    star: bool = False
    watch: bool = False

    model_config = {"frozen": True}


class Post(_PostFields):
    """Snapshot of a post as fetched from the server."""

    body_md: str = ""
    body_html: str = ""
    message: Optional[str] = None

    def original_revision(self) -> OriginalRevision:
        """Capture the revision this snapshot represents."""
        return OriginalRevision(
            body_md=self.body_md,
            number=self.revision_number,
            user=self.updated_by.screen_name,
        )

    def edit(
        self,
        content: PostContent,
        wip: bool,
        message: Optional[str] = None,
    ) -> EditedPost:
        """Build an edit request from parsed editor content.

        The request carries this snapshot's body, revision number and
        updater so the server can flag edits made on a stale revision.
        """
        return EditedPost(
            name=content.name,
            body_md=content.body_md,
            tags=list(content.tags),
            category=content.category,
            wip=wip,
            message=message,
            original_revision=self.original_revision(),
        )


class CreatedPost(_PostFields):
    """Server response to a create request."""

    body_md: Optional[str] = None
    body_html: Optional[str] = None
    message: Optional[str] = None


class EditedPostResult(_PostFields):
    """Server response to an edit request."""

    body_md: Optional[str] = None
    body_html: Optional[str] = None
    message: Optional[str] = None
    overlapped: bool = Field(
        default=False,
        description="True when the edit was merged on top of a newer revision"
    )


class PostPage(BaseModel):
    """One page of a post listing."""

    posts: List[Post] = Field(default_factory=list)
    prev_page: Optional[int] = None
    next_page: Optional[int] = None
    total_count: int = 0
    page: int = 1
    per_page: int = 20
    max_per_page: int = 100

    model_config = {"frozen": True}


Include = Literal["stargazers", "comments", "comments.stargazers"]
Sort = Literal["updated", "created", "number", "stars", "watches", "comments", "best_match"]
Order = Literal["desc", "asc"]


class SearchQuery(BaseModel):
    """Query for listing or searching posts."""

    q: Optional[str] = Field(default=None, description="esa search syntax, e.g. 'in:dev wip:false'")
    include: Optional[List[Include]] = None
    sort: Optional[Sort] = None
    order: Order = "desc"
    page: Optional[int] = Field(default=None, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1, le=100)

    model_config = {"frozen": True}

    def to_params(self) -> Dict[str, Any]:
        """Render as HTTP query parameters, omitting unset fields."""
        params: Dict[str, Any] = {}
        if self.q:
            params["q"] = self.q
        if self.include:
            params["include"] = ",".join(self.include)
        if self.sort:
            params["sort"] = self.sort
            params["order"] = self.order
        if self.page is not None:
            params["page"] = self.page
        if self.per_page is not None:
            params["per_page"] = self.per_page
        return params
