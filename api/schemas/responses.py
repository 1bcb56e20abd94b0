"""Response schemas for API endpoints."""
from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class JobSubmitResponse(BaseModel):
    """Response schema for bulk word submission."""
    job_id: str = Field(..., alias="jobId", description="Unique job identifier")
    status: str = Field(..., description="Current job status")
    total_words: int = Field(..., alias="totalWords", description="Number of words in the job")
    message: str = Field(default="Job accepted for processing")

    class Config:
        populate_by_name = True


class JobStatusResponse(BaseModel):
    """Response schema for job status."""
    job_id: str = Field(..., description="Unique job identifier")
    status: str = Field(..., description="Current job status")
    total_words: int = Field(..., description="Number of words submitted")
    processed_words: int = Field(..., description="Number of words processed (succeeded + failed)")
    succeeded_words: int = Field(..., description="Number of words processed successfully")
    failed_words: int = Field(..., description="Number of words that failed")
    pending_words: int = Field(..., description="Number of words not yet processed")
    error_message: Optional[str] = Field(None, description="Job-level error, if any")
    submitted_at: datetime = Field(..., description="Submission timestamp")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class JobItemResult(BaseModel):
    """Schema for a single job item."""
    item_id: str = Field(..., description="Unique item identifier")
    word: str = Field(..., description="Submitted word")
    status: str = Field(..., description="Item status")
    result_reference: Optional[str] = Field(None, description="ID of the first definition created")
    error_message: Optional[str] = Field(None, description="Failure reason")
    retry_count: int = Field(0, description="Transient failures so far")
    processed_at: Optional[datetime] = Field(None, description="Last processing timestamp")


class JobItemsResponse(BaseModel):
    """Response schema for the items of a job."""
    job_id: str = Field(..., description="Unique job identifier")
    status: str = Field(..., description="Current job status")
    counts: Dict[str, int] = Field(default_factory=dict, description="Item counts by status")
    items: List[JobItemResult] = Field(default_factory=list, description="Job items")


class JobCancelResponse(BaseModel):
    """Response schema for job cancellation."""
    job_id: str = Field(..., description="Unique job identifier")
    status: str = Field(..., description="New job status")
    message: str = Field(..., description="Cancellation message")


class QueueStatsResponse(BaseModel):
    """Response schema for queue statistics."""
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class WordResult(BaseModel):
    """Schema for a stored word definition."""
    id: str
    word: str
    part_of_speech: str
    difficulty: str
    definition: str
    example_sentence: str
    translation: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    correct_option: str
    created_at: datetime


class WordListResponse(BaseModel):
    """Response schema for paginated word listing."""
    words: List[WordResult] = Field(default_factory=list)
    page: int
    total_pages: int
    total_words: int
    has_next: bool
    has_prev: bool


class RandomWordsResponse(BaseModel):
    """Response schema for random quiz words."""
    words: List[WordResult] = Field(default_factory=list)
    count: int
    requested: int


class StatCount(BaseModel):
    """One bucket of a grouped count."""
    value: str
    count: int


class WordQueueCounts(BaseModel):
    """Items still waiting on the worker."""
    pending: int = 0
    processing: int = 0


class WordStatsResponse(BaseModel):
    """Response schema for word statistics."""
    total_words: int
    by_part_of_speech: List[StatCount] = Field(default_factory=list)
    by_difficulty: List[StatCount] = Field(default_factory=list)
    queue: WordQueueCounts


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Detailed error information")
