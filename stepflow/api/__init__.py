"""
API package - FastAPI routes and schemas.
"""

from stepflow.api.routes import workflows

__all__ = ["workflows"]
