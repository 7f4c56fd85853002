"""
Blog Posts API Server
CRUD over a document collection of blog posts
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from blog_api.config.settings import ALLOWED_ORIGINS, LOG_LEVEL
from blog_api.database.connection import init_database, close_database
from blog_api.api.routes import health, posts
from blog_api.utils.error_handling import setup_error_handling

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    await init_database()
    yield
    await close_database()


# FastAPI app initialization
app = FastAPI(
    title="Blog Posts API",
    description="Create, read, update and delete blog posts",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Setup centralized error handling
setup_error_handling(app)

# Include API routes
app.include_router(health.router, tags=["Health"])
app.include_router(posts.router, prefix="/posts", tags=["Posts"])
