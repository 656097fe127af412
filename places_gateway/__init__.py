"""
Places gateway package.

A FastAPI application that fronts an upstream place-search API, renames
its fields to {slug, subtitle, title} and caches the results.
"""
from .main import app, create_app

__version__ = "1.0.0"
__all__ = ["app", "create_app"]
