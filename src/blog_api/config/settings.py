"""
Configuration settings for the Blog Posts API
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Environment configuration
DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017/blog-app")
# memory:// keeps the suite runnable without a MongoDB server
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "memory://test-blog-app")
POSTS_COLLECTION = os.getenv("POSTS_COLLECTION", "blogposts")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS settings
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()]

# Validate required environment variables
if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is required")
if not isinstance(logging.getLevelName(LOG_LEVEL), int):
    raise ValueError(f"LOG_LEVEL must be a logging level name, got: {LOG_LEVEL}")
