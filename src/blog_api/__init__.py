"""
Blog posts API - CRUD service over a document collection of blog posts
"""

__version__ = "1.0.0"
