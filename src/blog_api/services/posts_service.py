"""
Blog posts service - business logic for post management
"""

import logging
from typing import Optional

from blog_api.config.settings import POSTS_COLLECTION
from blog_api.models.post import (
    PostCreateRequest,
    PostUpdateRequest,
    build_post_document,
    build_update_fields,
)
from blog_api.services.base_service import BaseService, ServiceResult

logger = logging.getLogger(__name__)


class PostsService(BaseService):
    """Service for blog post operations"""

    def __init__(self, collection_name: str = POSTS_COLLECTION):
        super().__init__(collection_name)

    async def list_posts(self) -> ServiceResult:
        return await self.read()

    async def get_post(self, post_id: str) -> ServiceResult:
        return await self.get_by_id(post_id)

    async def create_post(self, request: PostCreateRequest) -> ServiceResult:
        """
        Create a new post

        Args:
            request: Validated create payload

        Returns:
            ServiceResult with the stored post document
        """
        logger.info(f"Creating post '{request.title}' by {request.author.lastName}")
        return await self.create(build_post_document(request))

    async def update_post(self, post_id: str, request: PostUpdateRequest) -> ServiceResult:
        """
        Replace title, content and author of an existing post

        The id in the payload is optional but must match the path id when present.
        """
        if request.id is not None and request.id != post_id:
            return ServiceResult(
                success=False,
                error=f"Request path id ({post_id}) and request body id ({request.id}) must match",
                error_type="INVALID_QUERY"
            )

        logger.info(f"Updating post {post_id}")
        return await self.update(post_id, build_update_fields(request))

    async def delete_post(self, post_id: str) -> ServiceResult:
        result = await self.delete(post_id)
        if result.count == 0:
            logger.info(f"Delete requested for missing post {post_id}")
        return result


# Global service instance
_posts_service: Optional[PostsService] = None


def get_posts_service() -> PostsService:
    """Get the global posts service instance"""
    global _posts_service
    if _posts_service is None:
        _posts_service = PostsService()
    return _posts_service
