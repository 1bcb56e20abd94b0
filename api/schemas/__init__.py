# Schemas module
from .requests import WordListRequest
from .responses import (
    JobSubmitResponse,
    JobStatusResponse,
    JobItemResult,
    JobItemsResponse,
    JobCancelResponse,
    QueueStatsResponse,
    WordResult,
    WordListResponse,
    RandomWordsResponse,
    StatCount,
    WordQueueCounts,
    WordStatsResponse,
    ErrorResponse
)

__all__ = [
    "WordListRequest",
    "JobSubmitResponse",
    "JobStatusResponse",
    "JobItemResult",
    "JobItemsResponse",
    "JobCancelResponse",
    "QueueStatsResponse",
    "WordResult",
    "WordListResponse",
    "RandomWordsResponse",
    "StatCount",
    "WordQueueCounts",
    "WordStatsResponse",
    "ErrorResponse"
]
