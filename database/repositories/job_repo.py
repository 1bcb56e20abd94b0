"""Job repository for CRUD operations on Jobs collection."""
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from shared.utils import generate_job_id, get_utc_now


class JobStatus:
    """Job status constants."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"
    CANCELLED = "cancelled"

    PROCESSABLE = (PENDING, IN_PROGRESS)
    TERMINAL = (COMPLETED, COMPLETED_WITH_ERRORS, FAILED, CANCELLED)


class JobRepository:
    """
    Repository for Job CRUD operations.

    Every status or counter change is a single conditional update whose
    filter names the allowed source status, so a terminal job never changes
    again and counters cannot exceed total_words.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.jobs

    async def create_job(self, total_words: int) -> Dict[str, Any]:
        """Create a new pending job record."""
        now = get_utc_now()

        job = {
            "_id": generate_job_id(),
            "status": JobStatus.PENDING,
            "total_words": total_words,
            "processed_words": 0,
            "succeeded_words": 0,
            "failed_words": 0,
            "error_message": None,
            "submitted_at": now,
            "completed_at": None,
            "updated_at": now
        }

        await self.collection.insert_one(job)
        return job

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get a job by ID."""
        return await self.collection.find_one({"_id": job_id})

    async def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Get job status information."""
        job = await self.get_job(job_id)
        if not job:
            return None

        return {
            "job_id": job["_id"],
            "status": job["status"],
            "total_words": job["total_words"],
            "processed_words": job["processed_words"],
            "succeeded_words": job["succeeded_words"],
            "failed_words": job["failed_words"],
            "pending_words": max(0, job["total_words"] - job["processed_words"]),
            "error_message": job.get("error_message"),
            "submitted_at": job["submitted_at"],
            "completed_at": job.get("completed_at"),
            "updated_at": job["updated_at"]
        }

    async def mark_in_progress(self, job_id: str) -> bool:
        """Promote a pending job to in_progress. Safe to call repeatedly."""
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.PENDING},
            {
                "$set": {
                    "status": JobStatus.IN_PROGRESS,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0

    async def record_item_result(self, job_id: str, succeeded: bool) -> Optional[Dict[str, Any]]:
        """
        Atomically count one processed item and return the updated job.

        Returns None when the job is terminal or already fully counted.
        """
        counter = "succeeded_words" if succeeded else "failed_words"
        return await self.collection.find_one_and_update(
            {
                "_id": job_id,
                "status": {"$in": list(JobStatus.PROCESSABLE)},
                "$expr": {"$lt": ["$processed_words", "$total_words"]}
            },
            {
                "$inc": {"processed_words": 1, counter: 1},
                "$set": {"updated_at": get_utc_now()}
            },
            return_document=ReturnDocument.AFTER
        )

    async def reconcile_counters(self, job_id: str, succeeded: int, failed: int) -> bool:
        """Overwrite the counters of an in_progress job with the item totals."""
        result = await self.collection.update_one(
            {
                "_id": job_id,
                "status": JobStatus.IN_PROGRESS,
                "total_words": {"$gte": succeeded + failed}
            },
            {
                "$set": {
                    "processed_words": succeeded + failed,
                    "succeeded_words": succeeded,
                    "failed_words": failed,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0

    async def mark_failed(self, job_id: str, error_message: str) -> bool:
        """Mark a job that never started as failed."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.PENDING},
            {
                "$set": {
                    "status": JobStatus.FAILED,
                    "error_message": error_message,
                    "updated_at": now,
                    "completed_at": now
                }
            }
        )
        return result.modified_count > 0

    async def finalize_job(self, job_id: str, status: str) -> bool:
        """Move an in_progress job to a terminal completion status."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": job_id, "status": JobStatus.IN_PROGRESS},
            {
                "$set": {
                    "status": status,
                    "updated_at": now,
                    "completed_at": now
                }
            }
        )
        return result.modified_count > 0

    async def cancel_job(self, job_id: str) -> bool:
        """Cancel a job if it's still pending or in progress."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {
                "_id": job_id,
                "status": {"$in": list(JobStatus.PROCESSABLE)}
            },
            {
                "$set": {
                    "status": JobStatus.CANCELLED,
                    "updated_at": now,
                    "completed_at": now
                }
            }
        )
        return result.modified_count > 0

    async def list_jobs(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """List jobs with optional status filter."""
        query = {}
        if status:
            query["status"] = status

        cursor = self.collection.find(query).sort("submitted_at", -1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def list_in_progress_jobs(self) -> List[Dict[str, Any]]:
        """List every in_progress job with the fields the finalizer needs."""
        cursor = self.collection.find(
            {"status": JobStatus.IN_PROGRESS},
            {"total_words": 1, "processed_words": 1, "failed_words": 1, "status": 1}
        )
        return await cursor.to_list(length=None)
