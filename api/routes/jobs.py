"""Job routes for the REST API."""
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from api.dependencies import get_job_repo, get_item_repo, get_submission_service
from api.models import JobModel, JobItemModel
from api.schemas.requests import WordListRequest
from api.schemas.responses import (
    JobSubmitResponse,
    JobStatusResponse,
    JobItemResult,
    JobItemsResponse,
    JobCancelResponse,
    QueueStatsResponse,
    ErrorResponse
)
from api.services.submission import BatchSubmissionService
from database.repositories.job_repo import JobRepository, JobStatus
from database.repositories.job_item_repo import JobItemRepository


router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "/submit",
    response_model=JobSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"model": ErrorResponse}}
)
async def submit_job(
    request: WordListRequest,
    service: BatchSubmissionService = Depends(get_submission_service)
):
    """
    Submit a list of words for background processing.

    - Validates the word list
    - Creates the job record and one pending item per word
    - Returns immediately; the worker processes the items later
    """
    job = await service.submit(request.words)

    return JobSubmitResponse(
        job_id=job["_id"],
        status=job["status"],
        total_words=job["total_words"],
        message=(
            f"Bulk job submitted successfully with {job['total_words']} words. "
            "Processing will start in the background."
        )
    )


@router.get("/queue/stats", response_model=QueueStatsResponse)
async def get_queue_stats(item_repo: JobItemRepository = Depends(get_item_repo)):
    """Get item counts by status across all jobs."""
    counts = await item_repo.count_by_status()
    return QueueStatsResponse(**counts)


@router.get("/{job_id}/status", response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    job_repo: JobRepository = Depends(get_job_repo)
):
    """Get the current status and counters of a job."""
    status_info = await job_repo.get_job_status(job_id)

    if not status_info:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )

    return JobStatusResponse(**status_info)


@router.get("/{job_id}/items", response_model=JobItemsResponse)
async def get_job_items(
    job_id: str,
    status_filter: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    skip: int = Query(default=0, ge=0),
    job_repo: JobRepository = Depends(get_job_repo),
    item_repo: JobItemRepository = Depends(get_item_repo)
):
    """Get the items of a job with their individual outcomes."""
    job = await job_repo.get_job(job_id)

    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )

    items = await item_repo.list_items(job_id, status=status_filter, limit=limit, skip=skip)
    counts = await item_repo.count_by_status(job_id)

    results = []
    for item in items:
        model = JobItemModel(**item)
        results.append(JobItemResult(
            item_id=model.id,
            word=model.word_text,
            status=model.status.value,
            result_reference=model.result_reference,
            error_message=model.error_message,
            retry_count=model.retry_count,
            processed_at=model.processed_at
        ))

    return JobItemsResponse(
        job_id=job_id,
        status=job["status"],
        counts=counts,
        items=results
    )


@router.delete("/{job_id}", response_model=JobCancelResponse)
async def cancel_job(
    job_id: str,
    job_repo: JobRepository = Depends(get_job_repo)
):
    """Cancel a pending or in-progress job. Its remaining items are never processed."""
    job = await job_repo.get_job(job_id)

    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found"
        )

    if job["status"] not in JobStatus.PROCESSABLE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot cancel job with status {job['status']}"
        )

    success = await job_repo.cancel_job(job_id)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to cancel job"
        )

    return JobCancelResponse(
        job_id=job_id,
        status=JobStatus.CANCELLED,
        message=f"Job cancelled after {job['processed_words']} of {job['total_words']} words."
    )


@router.get("/", response_model=List[JobStatusResponse])
async def list_jobs(
    status_filter: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
    skip: int = Query(default=0, ge=0),
    job_repo: JobRepository = Depends(get_job_repo)
):
    """List jobs, newest first, with optional status filter."""
    jobs = await job_repo.list_jobs(status=status_filter, limit=limit, skip=skip)

    result = []
    for job in jobs:
        model = JobModel(**job)
        result.append(JobStatusResponse(
            job_id=model.id,
            status=model.status.value,
            total_words=model.total_words,
            processed_words=model.processed_words,
            succeeded_words=model.succeeded_words,
            failed_words=model.failed_words,
            pending_words=model.pending_words,
            error_message=model.error_message,
            submitted_at=model.submitted_at,
            completed_at=model.completed_at,
            updated_at=model.updated_at
        ))

    return result
