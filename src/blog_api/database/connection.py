"""
Database connection management
"""

import logging
from typing import Optional

from blog_api.config.settings import DATABASE_URL
from blog_api.database.document_store import DocumentStore, create_document_store

logger = logging.getLogger(__name__)

# Global document store, shared by the whole process
document_store: Optional[DocumentStore] = None


async def init_database(database_url: Optional[str] = None) -> DocumentStore:
    """Open the document store; a second call reuses the open store"""
    global document_store
    if document_store is not None:
        return document_store

    url = database_url or DATABASE_URL
    store = create_document_store(url)
    try:
        await store.connect()
    except Exception:
        logger.error(f"Failed to connect to document store: {store.database_name}")
        await store.close()
        raise
    document_store = store

    logger.info(f"Database initialized successfully: {store.database_name}")
    return store


async def close_database():
    """Close the document store"""
    global document_store
    if document_store is not None:
        await document_store.close()
        document_store = None
    logger.info("Database connections closed")


def get_document_store() -> DocumentStore:
    """Get the open document store instance"""
    if document_store is None:
        raise RuntimeError("Document store not initialized")
    return document_store
