"""
Base service layer for document collection operations
"""

import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass

from blog_api.database.connection import get_document_store
from blog_api.database.document_store import DocumentCollection, DocumentStoreError, DuplicateDocumentError

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[List[Dict[str, Any]]] = None
    count: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None


class BaseService:
    """Base service wrapping one collection of the shared document store"""

    def __init__(self, collection_name: str):
        self.collection_name = collection_name
        logger.info(f"BaseService initialized for collection: {collection_name}")

    @property
    def collection(self) -> DocumentCollection:
        # Resolved per call so a reopened store is picked up
        return get_document_store().collection(self.collection_name)

    async def create(self, data: Dict[str, Any]) -> ServiceResult:
        """
        Insert a new document

        Args:
            data: Document to insert; the store assigns its _id

        Returns:
            ServiceResult with the stored document
        """
        try:
            inserted_id = await self.collection.insert_one(dict(data))
            document = await self.collection.find_by_id(inserted_id)

            if document is None:
                raise DocumentStoreError("Insert operation failed - document not found after insertion")

            return ServiceResult(success=True, data=[document], count=1)

        except DuplicateDocumentError as e:
            logger.warning(f"Duplicate document in {self.collection_name}: {e}")
            return ServiceResult(
                success=False,
                error="Document already exists",
                error_type="CONFLICT"
            )
        except DocumentStoreError as e:
            logger.error(f"Create operation failed for {self.collection_name}: {e}", exc_info=True)
            return ServiceResult(
                success=False,
                error=f"Database operation failed: {e}",
                error_type="DATABASE_ERROR"
            )

    async def read(self, filters: Optional[Dict[str, Any]] = None) -> ServiceResult:
        """Read every document matching the equality filters"""
        documents = await self.collection.find(filters)
        return ServiceResult(success=True, data=documents, count=len(documents))

    async def get_by_id(self, record_id: str) -> ServiceResult:
        """
        Get a single document by id

        Returns:
            ServiceResult with one document, or RESOURCE_NOT_FOUND
        """
        document = await self.collection.find_by_id(record_id)
        if document is None:
            return ServiceResult(
                success=False,
                error=f"Record not found with ID: {record_id}",
                error_type="RESOURCE_NOT_FOUND"
            )
        return ServiceResult(success=True, data=[document], count=1)

    async def update(self, record_id: str, data: Dict[str, Any]) -> ServiceResult:
        """
        Set fields on an existing document

        Args:
            record_id: Id of the document to update
            data: Field values to set

        Returns:
            ServiceResult with the updated document
        """
        matched = await self.collection.update_by_id(record_id, data)
        if not matched:
            return ServiceResult(
                success=False,
                error=f"Record with id {record_id} not found",
                error_type="RESOURCE_NOT_FOUND"
            )
        return await self.get_by_id(record_id)

    async def delete(self, record_id: str) -> ServiceResult:
        """Delete a document by id; count is 0 when it did not exist"""
        deleted = await self.collection.delete_by_id(record_id)
        return ServiceResult(success=True, count=1 if deleted else 0)

    async def count(self) -> int:
        return await self.collection.count()
