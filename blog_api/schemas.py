from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")
ItemT = TypeVar("ItemT")


class CamelModel(BaseModel):
    """Base model whose JSON keys are camelCase (``postId``, ``pageSize``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Envelope ---

class ApiResponse(CamelModel, Generic[DataT]):
    code: int = Field(200, examples=[200])
    message: str = Field("success", examples=["success"])
    data: DataT | None = None


class ErrorResponse(CamelModel):
    code: int = Field(examples=[400])
    message: str = Field(examples=["invalid parameters"])


class PageData(CamelModel, Generic[ItemT]):
    items: list[ItemT] = Field(alias="list")
    total: int
    pages: int = 0


class MessageData(CamelModel):
    message: str


# --- User ---

class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=20, examples=["testuser"])
    nickname: str = Field(min_length=1, max_length=64, examples=["Test User"])
    password: str = Field(min_length=6, max_length=72, examples=["123456"])
    email: str | None = Field(
        None,
        max_length=128,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        examples=["test@example.com"],
    )


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, examples=["testuser"])
    password: str = Field(min_length=1, examples=["123456"])


class UserResponse(CamelModel):
    user_id: int
    username: str
    nickname: str
    email: str | None = None


class LoginResponse(CamelModel):
    token: str
    user_id: int
    username: str
    nickname: str


# --- Post ---

class CreatePostRequest(CamelModel):
    title: str = Field(min_length=1, max_length=20, examples=["My first post"])
    content: str = Field(min_length=1, max_length=200, examples=["Post content..."])


class UpdatePostRequest(CamelModel):
    post_id: int = Field(ge=1, examples=[1])
    title: str | None = Field(None, min_length=1, max_length=20)
    content: str | None = Field(None, min_length=1, max_length=200)


class DeletePostRequest(CamelModel):
    post_id: int = Field(ge=1, examples=[1])


class PostResponse(CamelModel):
    id: int
    user_id: int
    title: str
    content: str
    comment_status: int
    created_at: str | None = None
    updated_at: str | None = None


class PostListItem(PostResponse):
    username: str
    nickname: str


# --- Comment ---

class CreateCommentRequest(CamelModel):
    post_id: int = Field(ge=1, examples=[1])
    content: str = Field(min_length=1, max_length=200, examples=["Great post!"])


class DeleteCommentRequest(CamelModel):
    comment_id: int = Field(ge=1, examples=[1])


class CommentResponse(CamelModel):
    id: int
    post_id: int
    user_id: int | None
    content: str
    created_at: str | None = None


class CommentListItem(CommentResponse):
    username: str | None = None
    nickname: str | None = None


DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_datetime(value) -> str | None:
    """Render a timestamp the way every response shows it."""
    return value.strftime(DATETIME_FORMAT) if value else None


# OpenAPI error documentation shared by the routers.
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid parameters or business error"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}
AUTH_RESPONSES = {
    **ERROR_RESPONSES,
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
}
