"""Job item repository for CRUD operations on the JobItems collection."""
from datetime import timedelta
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from shared.config import settings
from shared.utils import generate_item_id, get_utc_now


class JobItemStatus:
    """Job item status constants."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    ALL = (PENDING, PROCESSING, COMPLETED, FAILED)


class JobItemRepository:
    """Repository for JobItem CRUD operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.job_items
        self.jobs_collection_name = db.jobs.name

    async def create_items(
        self,
        job_id: str,
        words: List[str],
        chunk_size: Optional[int] = None
    ) -> int:
        """Create one pending item per word. Returns the number inserted."""
        chunk_size = chunk_size or settings.item_insert_chunk_size
        inserted = 0

        for start in range(0, len(words), chunk_size):
            now = get_utc_now()
            items = [
                {
                    "_id": generate_item_id(),
                    "job_id": job_id,
                    "word_text": word,
                    "status": JobItemStatus.PENDING,
                    "processed_at": None,
                    "error_message": None,
                    "result_reference": None,
                    "retry_count": 0,
                    "available_at": now,
                    "created_at": now,
                    "updated_at": now
                }
                for word in words[start:start + chunk_size]
            ]
            result = await self.collection.insert_many(items, ordered=True)
            inserted += len(result.inserted_ids)

        return inserted

    async def fetch_pending(self, limit: int) -> List[Dict[str, Any]]:
        """
        Fetch up to limit claimable items, oldest first.

        Each item carries a "job_status" field with its parent job's status
        (None if the job is missing).
        """
        pipeline = [
            {"$match": {
                "status": JobItemStatus.PENDING,
                "available_at": {"$lte": get_utc_now()}
            }},
            {"$sort": {"created_at": 1}},
            {"$limit": limit},
            {"$lookup": {
                "from": self.jobs_collection_name,
                "localField": "job_id",
                "foreignField": "_id",
                "as": "job"
            }},
            {"$addFields": {
                "job_status": {"$ifNull": [{"$arrayElemAt": ["$job.status", 0]}, None]}
            }},
            {"$project": {"job": 0}}
        ]
        cursor = self.collection.aggregate(pipeline)
        return await cursor.to_list(length=limit)

    async def claim_item(self, item_id: str) -> bool:
        """Compare-and-set an item from pending to processing."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": item_id, "status": JobItemStatus.PENDING},
            {
                "$set": {
                    "status": JobItemStatus.PROCESSING,
                    "processed_at": now,
                    "updated_at": now
                }
            }
        )
        return result.modified_count > 0

    async def mark_completed(self, item_id: str, result_reference: Optional[str]) -> bool:
        """Mark item as completed, pointing at its first definition record."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {"_id": item_id, "status": JobItemStatus.PROCESSING},
            {
                "$set": {
                    "status": JobItemStatus.COMPLETED,
                    "result_reference": result_reference,
                    "error_message": None,
                    "processed_at": now,
                    "updated_at": now
                }
            }
        )
        return result.modified_count > 0

    async def mark_failed(self, item_id: str, error_message: str) -> bool:
        """Mark a pending or processing item as failed with a truncated reason."""
        now = get_utc_now()
        result = await self.collection.update_one(
            {
                "_id": item_id,
                "status": {"$in": [JobItemStatus.PENDING, JobItemStatus.PROCESSING]}
            },
            {
                "$set": {
                    "status": JobItemStatus.FAILED,
                    "error_message": error_message[:settings.error_message_max_length],
                    "processed_at": now,
                    "updated_at": now
                }
            }
        )
        return result.modified_count > 0

    async def requeue_item(
        self,
        item_id: str,
        error_message: str,
        delay: float
    ) -> Optional[int]:
        """Put a processing item back to pending after a transient failure.

        Returns the new retry count, or None if the item was not processing.
        """
        now = get_utc_now()
        result = await self.collection.find_one_and_update(
            {"_id": item_id, "status": JobItemStatus.PROCESSING},
            {
                "$inc": {"retry_count": 1},
                "$set": {
                    "status": JobItemStatus.PENDING,
                    "error_message": error_message[:settings.error_message_max_length],
                    "available_at": now + timedelta(seconds=delay),
                    "updated_at": now
                }
            },
            return_document=ReturnDocument.AFTER
        )
        return result["retry_count"] if result else None

    async def release_stale(self, timeout: float) -> int:
        """
        Put items stuck in processing for longer than timeout seconds back to pending.

        Returns the number of items released.
        """
        now = get_utc_now()
        result = await self.collection.update_many(
            {
                "status": JobItemStatus.PROCESSING,
                "processed_at": {"$lte": now - timedelta(seconds=timeout)}
            },
            {
                "$inc": {"retry_count": 1},
                "$set": {
                    "status": JobItemStatus.PENDING,
                    "available_at": now,
                    "updated_at": now
                }
            }
        )
        return result.modified_count

    async def list_items(
        self,
        job_id: str,
        status: Optional[str] = None,
        limit: int = 100,
        skip: int = 0
    ) -> List[Dict[str, Any]]:
        """List the items of a job in submission order."""
        query = {"job_id": job_id}
        if status:
            query["status"] = status

        cursor = self.collection.find(query).sort("created_at", 1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit)

    async def count_by_status(self, job_id: Optional[str] = None) -> Dict[str, int]:
        """Count items grouped by status, optionally for a single job."""
        pipeline = []
        if job_id:
            pipeline.append({"$match": {"job_id": job_id}})
        pipeline.append({"$group": {"_id": "$status", "count": {"$sum": 1}}})

        counts = {status: 0 for status in JobItemStatus.ALL}
        cursor = self.collection.aggregate(pipeline)
        for row in await cursor.to_list(length=None):
            counts[row["_id"]] = row["count"]
        return counts
