"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from feednly.api import app

    uvicorn feednly.api:app
"""

from feednly.api.app import app

__all__ = ["app"]
