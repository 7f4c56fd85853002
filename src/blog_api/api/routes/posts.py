"""
Blog post API routes
All database operations go through the posts service layer.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Response, status

from blog_api.models.post import PostCreateRequest, PostResponse, PostUpdateRequest, serialize_post
from blog_api.services.posts_service import get_posts_service
from blog_api.utils.error_handling import set_endpoint_context

router = APIRouter()
logger = logging.getLogger(__name__)


def raise_for_result(result, not_found_detail: str = "Post not found"):
    """Map a failed ServiceResult onto an HTTP error"""
    if result.error_type == "RESOURCE_NOT_FOUND":
        raise HTTPException(status_code=404, detail=not_found_detail)
    elif result.error_type == "INVALID_QUERY":
        raise HTTPException(status_code=400, detail=result.error)
    elif result.error_type == "CONFLICT":
        raise HTTPException(status_code=409, detail=result.error)
    else:
        raise HTTPException(status_code=500, detail=result.error)


@router.get("", response_model=List[PostResponse])
async def list_posts():
    """List every blog post"""
    set_endpoint_context("posts.list")
    result = await get_posts_service().list_posts()

    if not result.success:
        raise_for_result(result)

    return [serialize_post(document) for document in result.data]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str):
    """Get one blog post"""
    set_endpoint_context("posts.get")
    result = await get_posts_service().get_post(post_id)

    if not result.success:
        raise_for_result(result)

    return serialize_post(result.data[0])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(request: PostCreateRequest):
    """Create a new blog post"""
    set_endpoint_context("posts.create")
    result = await get_posts_service().create_post(request)

    if not result.success:
        raise_for_result(result)

    post = serialize_post(result.data[0])
    logger.info(f"Created post {post['id']}")
    return post


@router.put("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_post(post_id: str, request: PostUpdateRequest):
    """Replace the title, content and author of a blog post"""
    set_endpoint_context("posts.update")
    result = await get_posts_service().update_post(post_id, request)

    if not result.success:
        raise_for_result(result)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str):
    """Delete a blog post; deleting a missing post is not an error"""
    set_endpoint_context("posts.delete")
    result = await get_posts_service().delete_post(post_id)

    if not result.success:
        raise_for_result(result)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
