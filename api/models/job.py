"""Job model definitions."""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class JobStatusEnum(str, Enum):
    """Job status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobModel(BaseModel):
    """Job model for database representation."""
    id: str = Field(alias="_id")
    status: JobStatusEnum
    total_words: int
    processed_words: int
    succeeded_words: int
    failed_words: int
    error_message: Optional[str] = None
    submitted_at: datetime
    completed_at: Optional[datetime] = None
    updated_at: datetime

    class Config:
        populate_by_name = True

    @property
    def pending_words(self) -> int:
        return max(0, self.total_words - self.processed_words)
