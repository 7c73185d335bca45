"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.comparer import router as comparer_router

__all__ = [
    "comparer_router",
]
