"""
Blog post Pydantic models and the stored/external serialization boundary

Stored documents keep the author as {firstName, lastName}. The API only ever
exposes the single display string "firstName lastName"; every conversion
between the two forms goes through this module.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

POST_FIELDS = ("id", "author", "content", "title", "created")


class Author(BaseModel):
    firstName: str = Field(..., min_length=1, description="Author first name")
    lastName: str = Field(..., min_length=1, description="Author last name")


class PostCreateRequest(BaseModel):
    author: Author
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    created: Optional[datetime] = Field(None, description="Defaults to the time of insert")


class PostUpdateRequest(BaseModel):
    """Full replacement of the mutable fields; partial updates are rejected"""
    id: Optional[str] = Field(None, description="Must equal the id in the path when supplied")
    author: Author
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class PostResponse(BaseModel):
    id: str
    author: str
    content: str
    title: str
    created: Optional[str] = None


def author_display_name(author: Optional[Dict[str, Any]]) -> str:
    """Project the stored author onto its external form, "firstName lastName" verbatim"""
    if not author:
        return ""
    names = (author.get("firstName"), author.get("lastName"))
    return " ".join(name for name in names if name is not None)


def format_created(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    # Stored datetimes come back naive and in UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def serialize_post(document: Dict[str, Any]) -> Dict[str, Any]:
    """Build the external representation of a stored post"""
    return {
        "id": str(document["_id"]),
        "author": author_display_name(document.get("author")),
        "content": document.get("content"),
        "title": document.get("title"),
        "created": format_created(document.get("created")),
    }


def build_post_document(request: PostCreateRequest) -> Dict[str, Any]:
    """Build the document to store for a create request"""
    return {
        "author": request.author.model_dump(),
        "title": request.title,
        "content": request.content,
        "created": request.created or datetime.now(timezone.utc),
    }


def build_update_fields(request: PostUpdateRequest) -> Dict[str, Any]:
    return {
        "author": request.author.model_dump(),
        "title": request.title,
        "content": request.content,
    }
