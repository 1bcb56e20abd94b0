"""Pytest configuration and fixtures."""
import pytest
from unittest.mock import MagicMock, AsyncMock

from tests.fakes import FakeJobRepository, FakeJobItemRepository, FakeWordRepository, FakeGenerator


@pytest.fixture
def mock_mongo_db():
    """Create mock MongoDB database."""
    db = MagicMock()

    # Mock collections
    db.jobs = MagicMock()
    db.jobs.name = "jobs"
    db.job_items = MagicMock()
    db.words = MagicMock()

    # Mock common operations
    for collection in (db.jobs, db.job_items, db.words):
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.insert_many = AsyncMock()
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
        collection.update_many = AsyncMock(return_value=MagicMock(modified_count=0))
        collection.find_one_and_update = AsyncMock(return_value=None)
        collection.count_documents = AsyncMock(return_value=0)
        collection.find = MagicMock()
        collection.aggregate = MagicMock()

    return db


@pytest.fixture
def mock_redis_client():
    """Create mock Redis client."""
    redis = AsyncMock()

    redis.incr = AsyncMock(return_value=1)
    redis.expire = AsyncMock(return_value=True)
    redis.set = AsyncMock(return_value=True)
    redis.get = AsyncMock(return_value=None)
    redis.pexpire = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)

    return redis


@pytest.fixture
def job_repo():
    return FakeJobRepository()


@pytest.fixture
def item_repo(job_repo):
    return FakeJobItemRepository(job_repo)


@pytest.fixture
def word_repo():
    return FakeWordRepository()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def sample_job():
    """Create sample job data."""
    return {
        "_id": "job_0123456789ab",
        "status": "in_progress",
        "total_words": 3,
        "processed_words": 1,
        "succeeded_words": 1,
        "failed_words": 0,
        "error_message": None,
        "submitted_at": "2024-02-04T10:30:00Z",
        "completed_at": None,
        "updated_at": "2024-02-04T10:35:00Z"
    }


@pytest.fixture
def sample_word_record():
    """Create sample stored definition."""
    return {
        "_id": "word_0123456789ab",
        "word": "apple",
        "part_of_speech": "noun",
        "difficulty": "beginner",
        "definition": "A round fruit with red or green skin.",
        "example_sentence": "She ate an apple.",
        "translation": "elma",
        "options": ["A fruit", "A car", "A city", "A color"],
        "correct_option": "A",
        "regeneration_note": None,
        "source": "gemini",
        "is_active": True,
        "created_at": "2024-02-04T10:32:00Z",
        "updated_at": "2024-02-04T10:32:00Z"
    }
