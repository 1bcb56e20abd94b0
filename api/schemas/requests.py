"""Request schemas for API endpoints."""
from typing import Any
from pydantic import BaseModel, Field


class WordListRequest(BaseModel):
    """
    Request schema for bulk and streaming word submission.

    The list is validated by the submission service so that each kind of
    bad input gets its own 400 reason instead of a generic 422.
    """
    words: Any = Field(default=None, description="Words to process, in submission order")
