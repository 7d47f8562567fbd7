"""
asgi.py -- ASGI entry point for Shopfront.

Kept separate from api/main.py so process managers have one stable import
path regardless of how the api package is organised.

Run with:  uvicorn asgi:app --reload
           uvicorn asgi:app --host 0.0.0.0 --port 5000 --workers 1

Use a single worker: the rate limiter counts in process memory.
"""

from api.main import app

__all__ = ["app"]
