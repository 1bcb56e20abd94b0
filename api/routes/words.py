"""Word routes: streaming submission and definition listing."""
import json
import math
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from api.dependencies import get_item_repo, get_streaming_reporter, get_word_repo
from api.models import WordDefinitionModel
from api.schemas.requests import WordListRequest
from api.schemas.responses import WordResult, WordListResponse, RandomWordsResponse, WordStatsResponse, WordQueueCounts
from api.services.streaming import StreamingProgressReporter
from api.services.submission import validate_word_list
from database.repositories.job_item_repo import JobItemRepository, JobItemStatus
from database.repositories.word_repo import WordRepository
from shared.config import settings


router = APIRouter(prefix="/words", tags=["words"])


def _to_word_result(record: Dict[str, Any]) -> WordResult:
    return WordResult(**WordDefinitionModel(**record).model_dump())


@router.post("/bulk-stream")
async def stream_words(
    payload: WordListRequest,
    request: Request,
    reporter: StreamingProgressReporter = Depends(get_streaming_reporter)
):
    """
    Process a small word list while the client waits.

    Responds with newline-delimited JSON events: start, then progress and one
    result event per word, then complete and end.
    """
    words = validate_word_list(payload.words, settings.stream_max_words, allow_blank=True)

    async def event_lines():
        async for event in reporter.stream(words, is_disconnected=request.is_disconnected):
            yield json.dumps(event) + "\n"

    return StreamingResponse(
        event_lines(),
        media_type="application/x-ndjson",
        headers={"Cache-Control": "no-cache"}
    )


@router.get("/", response_model=WordListResponse)
async def list_words(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = None,
    difficulty: Optional[str] = None,
    word_repo: WordRepository = Depends(get_word_repo)
):
    """List stored definitions, newest first."""
    records, total = await word_repo.list_words(
        search=search,
        difficulty=difficulty,
        limit=limit,
        skip=(page - 1) * limit
    )
    total_pages = math.ceil(total / limit)

    return WordListResponse(
        words=[_to_word_result(record) for record in records],
        page=page,
        total_pages=total_pages,
        total_words=total,
        has_next=page < total_pages,
        has_prev=page > 1
    )


@router.get("/random", response_model=RandomWordsResponse)
async def random_words(
    limit: int = Query(default=10, ge=1, le=100),
    difficulty: Optional[str] = None,
    word_repo: WordRepository = Depends(get_word_repo)
):
    """Random definitions for quiz sessions."""
    records = await word_repo.get_random_words(limit=limit, difficulty=difficulty)

    return RandomWordsResponse(
        words=[_to_word_result(record) for record in records],
        count=len(records),
        requested=limit
    )


@router.get("/stats", response_model=WordStatsResponse)
async def word_stats(
    word_repo: WordRepository = Depends(get_word_repo),
    item_repo: JobItemRepository = Depends(get_item_repo)
):
    """Counts of stored definitions by part of speech and difficulty, plus queue depth."""
    stats = await word_repo.stats()
    counts = await item_repo.count_by_status()

    return WordStatsResponse(
        **stats,
        queue=WordQueueCounts(
            pending=counts[JobItemStatus.PENDING],
            processing=counts[JobItemStatus.PROCESSING]
        )
    )
