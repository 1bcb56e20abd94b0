# Routes module
from .jobs import router as jobs_router
from .words import router as words_router

__all__ = ["jobs_router", "words_router"]
