"""Job item model definitions."""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class JobItemStatusEnum(str, Enum):
    """Job item status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class JobItemModel(BaseModel):
    """Job item model for database representation."""
    id: str = Field(alias="_id")
    job_id: str
    word_text: str
    status: JobItemStatusEnum
    processed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    result_reference: Optional[str] = None
    retry_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
