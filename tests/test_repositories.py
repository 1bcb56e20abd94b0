"""Repository tests against a mocked Motor database."""
import pytest
from unittest.mock import AsyncMock, MagicMock
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database.repositories.job_repo import JobRepository, JobStatus
from database.repositories.job_item_repo import JobItemRepository, JobItemStatus
from database.repositories.word_repo import WordRepository
from tests.fakes import make_sense


def cursor_returning(rows):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=rows)
    return cursor


class TestJobRepository:
    """Tests for JobRepository."""

    @pytest.mark.asyncio
    async def test_create_job(self, mock_mongo_db):
        repo = JobRepository(mock_mongo_db)

        job = await repo.create_job(total_words=3)

        assert job["_id"].startswith("job_")
        assert len(job["_id"]) == 16
        assert job["status"] == JobStatus.PENDING
        assert (job["processed_words"], job["succeeded_words"], job["failed_words"]) == (0, 0, 0)
        mock_mongo_db.jobs.insert_one.assert_awaited_once_with(job)

    @pytest.mark.asyncio
    async def test_record_item_result_is_guarded_increment(self, mock_mongo_db):
        repo = JobRepository(mock_mongo_db)

        await repo.record_item_result("job_1", succeeded=False)

        query, update = mock_mongo_db.jobs.find_one_and_update.await_args.args
        assert query["_id"] == "job_1"
        assert query["status"] == {"$in": [JobStatus.PENDING, JobStatus.IN_PROGRESS]}
        assert query["$expr"] == {"$lt": ["$processed_words", "$total_words"]}
        assert update["$inc"] == {"processed_words": 1, "failed_words": 1}
        kwargs = mock_mongo_db.jobs.find_one_and_update.await_args.kwargs
        assert kwargs["return_document"] == ReturnDocument.AFTER

    @pytest.mark.asyncio
    async def test_finalize_requires_in_progress(self, mock_mongo_db):
        repo = JobRepository(mock_mongo_db)

        assert await repo.finalize_job("job_1", JobStatus.COMPLETED)

        query, update = mock_mongo_db.jobs.update_one.await_args.args
        assert query == {"_id": "job_1", "status": JobStatus.IN_PROGRESS}
        assert update["$set"]["status"] == JobStatus.COMPLETED
        assert update["$set"]["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_mark_failed_only_from_pending(self, mock_mongo_db):
        mock_mongo_db.jobs.update_one.return_value = MagicMock(modified_count=0)
        repo = JobRepository(mock_mongo_db)

        assert not await repo.mark_failed("job_1", "Failed to queue words: boom")

        query, _ = mock_mongo_db.jobs.update_one.await_args.args
        assert query == {"_id": "job_1", "status": JobStatus.PENDING}

    @pytest.mark.asyncio
    async def test_get_job_status_computes_pending(self, mock_mongo_db, sample_job):
        mock_mongo_db.jobs.find_one.return_value = sample_job
        repo = JobRepository(mock_mongo_db)

        status = await repo.get_job_status(sample_job["_id"])

        assert status["job_id"] == sample_job["_id"]
        assert status["pending_words"] == 2

    @pytest.mark.asyncio
    async def test_get_job_status_missing(self, mock_mongo_db):
        assert await JobRepository(mock_mongo_db).get_job_status("job_missing") is None

    @pytest.mark.asyncio
    async def test_reconcile_counters_is_guarded_set(self, mock_mongo_db):
        repo = JobRepository(mock_mongo_db)

        assert await repo.reconcile_counters("job_1", succeeded=2, failed=1)

        query, update = mock_mongo_db.jobs.update_one.await_args.args
        assert query == {"_id": "job_1", "status": JobStatus.IN_PROGRESS, "total_words": {"$gte": 3}}
        assert update["$set"]["processed_words"] == 3
        assert (update["$set"]["succeeded_words"], update["$set"]["failed_words"]) == (2, 1)


class TestJobItemRepository:
    """Tests for JobItemRepository."""

    @pytest.mark.asyncio
    async def test_create_items_in_chunks(self, mock_mongo_db):
        mock_mongo_db.job_items.insert_many.side_effect = [
            MagicMock(inserted_ids=["a", "b"]),
            MagicMock(inserted_ids=["c"])
        ]
        repo = JobItemRepository(mock_mongo_db)

        inserted = await repo.create_items("job_1", ["x", "y", "z"], chunk_size=2)

        assert inserted == 3
        assert mock_mongo_db.job_items.insert_many.await_count == 2
        first_chunk = mock_mongo_db.job_items.insert_many.await_args_list[0].args[0]
        assert [item["word_text"] for item in first_chunk] == ["x", "y"]
        assert all(item["status"] == JobItemStatus.PENDING for item in first_chunk)
        assert all(item["retry_count"] == 0 for item in first_chunk)

    @pytest.mark.asyncio
    async def test_fetch_pending_joins_job_status(self, mock_mongo_db):
        mock_mongo_db.job_items.aggregate.return_value = cursor_returning([])
        repo = JobItemRepository(mock_mongo_db)

        await repo.fetch_pending(5)

        pipeline = mock_mongo_db.job_items.aggregate.call_args.args[0]
        assert pipeline[0]["$match"]["status"] == JobItemStatus.PENDING
        assert pipeline[1] == {"$sort": {"created_at": 1}}
        assert pipeline[2] == {"$limit": 5}
        assert pipeline[3]["$lookup"]["from"] == "jobs"

    @pytest.mark.asyncio
    async def test_claim_is_compare_and_set(self, mock_mongo_db):
        repo = JobItemRepository(mock_mongo_db)

        assert await repo.claim_item("item_1")

        query, update = mock_mongo_db.job_items.update_one.await_args.args
        assert query == {"_id": "item_1", "status": JobItemStatus.PENDING}
        assert update["$set"]["status"] == JobItemStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_mark_failed_truncates(self, mock_mongo_db):
        repo = JobItemRepository(mock_mongo_db)

        await repo.mark_failed("item_1", "e" * 400)

        _, update = mock_mongo_db.job_items.update_one.await_args.args
        assert len(update["$set"]["error_message"]) == 250

    @pytest.mark.asyncio
    async def test_requeue_increments_retry_count(self, mock_mongo_db):
        mock_mongo_db.job_items.find_one_and_update.return_value = {"_id": "item_1", "retry_count": 2}
        repo = JobItemRepository(mock_mongo_db)

        assert await repo.requeue_item("item_1", "Timeout", delay=4) == 2

        query, update = mock_mongo_db.job_items.find_one_and_update.await_args.args
        assert query == {"_id": "item_1", "status": JobItemStatus.PROCESSING}
        assert update["$inc"] == {"retry_count": 1}
        assert update["$set"]["status"] == JobItemStatus.PENDING
        assert update["$set"]["available_at"] > update["$set"]["updated_at"]

    @pytest.mark.asyncio
    async def test_count_by_status_defaults_to_zero(self, mock_mongo_db):
        mock_mongo_db.job_items.aggregate.return_value = cursor_returning([{"_id": "completed", "count": 4}])
        repo = JobItemRepository(mock_mongo_db)

        counts = await repo.count_by_status("job_1")

        assert counts == {"pending": 0, "processing": 0, "completed": 4, "failed": 0}

    @pytest.mark.asyncio
    async def test_release_stale_requeues_old_processing_items(self, mock_mongo_db):
        mock_mongo_db.job_items.update_many.return_value = MagicMock(modified_count=2)
        repo = JobItemRepository(mock_mongo_db)

        assert await repo.release_stale(600) == 2

        query, update = mock_mongo_db.job_items.update_many.await_args.args
        assert query["status"] == JobItemStatus.PROCESSING
        assert "$lte" in query["processed_at"]
        assert update["$set"]["status"] == JobItemStatus.PENDING
        assert update["$inc"] == {"retry_count": 1}


class TestWordRepository:
    """Tests for WordRepository."""

    @pytest.mark.asyncio
    async def test_save_new_definition(self, mock_mongo_db):
        repo = WordRepository(mock_mongo_db)

        record_id, created = await repo.save_definition(" Apple ", "beginner", make_sense("a fruit"))

        assert created
        assert record_id.startswith("word_")
        record = mock_mongo_db.words.insert_one.await_args.args[0]
        assert record["word"] == "apple"
        assert record["is_active"] is True

    @pytest.mark.asyncio
    async def test_duplicate_returns_existing_record(self, mock_mongo_db):
        mock_mongo_db.words.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        mock_mongo_db.words.find_one.return_value = {"_id": "word_existing"}
        repo = WordRepository(mock_mongo_db)

        assert await repo.save_definition("apple", "beginner", make_sense("a fruit")) == ("word_existing", False)

    @pytest.mark.asyncio
    async def test_list_words_with_search(self, mock_mongo_db, sample_word_record):
        mock_mongo_db.words.count_documents.return_value = 1
        mock_mongo_db.words.find.return_value = cursor_returning([sample_word_record])
        repo = WordRepository(mock_mongo_db)

        records, total = await repo.list_words(search="app", limit=20, skip=0)

        assert total == 1
        assert records == [sample_word_record]
        query = mock_mongo_db.words.find.call_args.args[0]
        assert query["is_active"] is True
        assert query["$or"][0] == {"word": {"$regex": "app", "$options": "i"}}

    @pytest.mark.asyncio
    async def test_stats_groups_active_definitions(self, mock_mongo_db):
        mock_mongo_db.words.count_documents.return_value = 5
        mock_mongo_db.words.aggregate.side_effect = [
            cursor_returning([{"_id": "noun", "count": 3}, {"_id": "verb", "count": 2}]),
            cursor_returning([{"_id": "beginner", "count": 5}])
        ]
        repo = WordRepository(mock_mongo_db)

        stats = await repo.stats()

        assert stats == {
            "total_words": 5,
            "by_part_of_speech": [{"value": "noun", "count": 3}, {"value": "verb", "count": 2}],
            "by_difficulty": [{"value": "beginner", "count": 5}]
        }
        mock_mongo_db.words.count_documents.assert_awaited_once_with({"is_active": True})
        pipeline = mock_mongo_db.words.aggregate.call_args_list[0].args[0]
        assert pipeline[0] == {"$match": {"is_active": True}}
        assert pipeline[2] == {"$sort": {"count": -1, "_id": 1}}
