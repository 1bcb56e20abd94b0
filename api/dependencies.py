"""FastAPI dependencies wiring repositories and services to the connections."""
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import redis.asyncio as redis

from api.services.streaming import StreamingProgressReporter
from api.services.submission import BatchSubmissionService
from database.connection import get_db, get_redis
from database.repositories.job_repo import JobRepository
from database.repositories.job_item_repo import JobItemRepository
from database.repositories.word_repo import WordRepository
from shared.coordination import RateLimiter
from shared.generator import WordGenerator


def get_job_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> JobRepository:
    return JobRepository(db)


def get_item_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> JobItemRepository:
    return JobItemRepository(db)


def get_word_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> WordRepository:
    return WordRepository(db)


def get_generator(redis_client: redis.Redis = Depends(get_redis)) -> WordGenerator:
    """Generator sharing the deployment-wide rate limit."""
    return WordGenerator(rate_limiter=RateLimiter(redis_client))


def get_submission_service(
    job_repo: JobRepository = Depends(get_job_repo),
    item_repo: JobItemRepository = Depends(get_item_repo)
) -> BatchSubmissionService:
    return BatchSubmissionService(job_repo, item_repo)


def get_streaming_reporter(
    word_repo: WordRepository = Depends(get_word_repo),
    generator: WordGenerator = Depends(get_generator)
) -> StreamingProgressReporter:
    return StreamingProgressReporter(word_repo, generator)
