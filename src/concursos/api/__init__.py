"""
API HTTP (FastAPI).
"""

from .router import router as notices_router

__all__ = ["notices_router"]
