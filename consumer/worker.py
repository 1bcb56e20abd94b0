"""Worker loop that claims pending job items and runs them through the generator."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

import redis.asyncio as redis
from redis.exceptions import RedisError
from motor.motor_asyncio import AsyncIOMotorDatabase

from consumer.finalizer import JobFinalizer
from database.repositories.job_repo import JobRepository, JobStatus
from database.repositories.job_item_repo import JobItemRepository
from database.repositories.word_repo import WordRepository
from shared.config import settings
from shared.coordination import RateLimiter, WorkerLease
from shared.generator import GenerationError, WordGenerator
from shared.utils import calculate_exponential_backoff, truncate_text

logger = logging.getLogger(__name__)

PARENT_NOT_PROCESSABLE = "Parent job not processable."


class ItemOutcome:
    """Outcome constants for a single processed item."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    REQUEUED = "requeued"
    ABANDONED = "abandoned"


@dataclass
class TickResult:
    """Summary of one tick."""
    claimed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    requeued: int = 0
    abandoned: int = 0
    released: int = 0
    finalized: int = 0

    def record(self, outcome: str):
        setattr(self, outcome, getattr(self, outcome) + 1)


class WordWorker:
    """
    Single logical worker for the word queue.

    Owns its stop event and the task running the loop, so several
    independent instances can coexist in one process.
    """

    def __init__(
        self,
        job_repo: JobRepository,
        item_repo: JobItemRepository,
        word_repo: WordRepository,
        generator: WordGenerator,
        worker_id: str = "worker-1",
        lease: Optional[WorkerLease] = None,
        batch_size: Optional[int] = None,
        item_delay: Optional[float] = None,
        idle_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        stale_timeout: Optional[float] = None
    ):
        self.job_repo = job_repo
        self.item_repo = item_repo
        self.word_repo = word_repo
        self.generator = generator
        self.worker_id = worker_id
        self.lease = lease
        self.batch_size = batch_size if batch_size is not None else settings.worker_batch_size
        self.item_delay = item_delay if item_delay is not None else settings.worker_item_delay
        self.idle_delay = idle_delay if idle_delay is not None else settings.worker_idle_delay
        self.max_retries = max_retries if max_retries is not None else settings.max_retry_attempts
        self.stale_timeout = stale_timeout if stale_timeout is not None else settings.worker_stale_timeout
        self.finalizer = JobFinalizer(job_repo, item_repo)
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        if lease is not None:
            # One item may wait out a full rate-limit window and then the generation timeout
            worst_case = settings.rate_limit_window + settings.generation_timeout + self.item_delay
            if lease.ttl_ms / 1000 <= worst_case:
                logger.warning(
                    f"Worker lease TTL ({lease.ttl_ms / 1000:.0f}s) is shorter than the worst case "
                    f"for one item ({worst_case:.0f}s); the lease may lapse mid-item"
                )

    @classmethod
    def from_connections(
        cls,
        db: AsyncIOMotorDatabase,
        redis_client: redis.Redis,
        worker_id: str = "worker-1",
        **kwargs
    ) -> "WordWorker":
        """Build a worker wired to MongoDB repositories and Redis coordination."""
        return cls(
            JobRepository(db),
            JobItemRepository(db),
            WordRepository(db),
            WordGenerator(rate_limiter=RateLimiter(redis_client)),
            worker_id=worker_id,
            lease=WorkerLease(redis_client, owner=worker_id),
            **kwargs
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop and return its task."""
        if self.running:
            logger.info(f"Worker {self.worker_id} is already running")
            return self._task

        self._stop_event.clear()
        self._task = asyncio.create_task(self.run_forever())
        return self._task

    async def stop(self):
        """
        Stop the worker gracefully.

        No new tick or item starts after this is called; an item already
        being processed runs to completion first.
        """
        logger.info(f"Worker {self.worker_id} stopping...")
        self._stop_event.set()

        task, self._task = self._task, None
        if task is not None:
            await task

    async def run_forever(self):
        """Run ticks until stopped, pausing idle_delay between ticks."""
        logger.info(f"Worker {self.worker_id} starting...")

        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_tick()
                except Exception as e:
                    logger.exception(f"Error in worker tick: {e}")

                await self._pause(self.idle_delay)
        finally:
            if self.lease is not None:
                try:
                    await self.lease.release()
                except Exception as e:
                    logger.error(f"Failed to release worker lease: {e}")
            logger.info(f"Worker {self.worker_id} stopped")

    async def run_tick(self) -> TickResult:
        """Claim a batch of pending items, process them, then run the finalizer."""
        result = TickResult()

        if not await self._holds_lease():
            logger.info(f"Worker {self.worker_id} does not hold the lease, skipping tick")
            return result

        result.released = await self.item_repo.release_stale(self.stale_timeout)
        if result.released:
            logger.warning(
                f"Released {result.released} item(s) stuck in processing for more than {self.stale_timeout}s"
            )

        items = await self.item_repo.fetch_pending(self.batch_size)

        if items:
            logger.info(f"Found {len(items)} pending word(s) to process")
            result.claimed = len(items)

            for index, item in enumerate(items):
                if self._stop_event.is_set():
                    logger.info(f"Worker {self.worker_id} stop requested, leaving remaining items pending")
                    break

                if index > 0 and not await self._holds_lease():
                    logger.warning(f"Worker {self.worker_id} lost the lease mid-tick, leaving remaining items pending")
                    break

                result.record(await self._process_item_safely(item))

                if index < len(items) - 1:
                    await self._pause(self.item_delay)
        else:
            logger.info("No pending words found")

        finalized = await self.finalizer.sweep()
        result.finalized = len(finalized)
        return result

    async def _holds_lease(self) -> bool:
        """Take or refresh the lease. Always true without one."""
        if self.lease is None:
            return True
        return await self.lease.acquire()

    async def _pause(self, seconds: float):
        """Sleep for seconds, waking early if stop() is called."""
        if seconds <= 0 or self._stop_event.is_set():
            return
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _process_item_safely(self, item: Dict[str, Any]) -> str:
        try:
            return await self._process_item(item)
        except Exception as e:
            logger.exception(f"Store error while processing item {item.get('_id')}: {e}")
            return ItemOutcome.ABANDONED

    async def _process_item(self, item: Dict[str, Any]) -> str:
        """Process a single job item."""
        item_id = item["_id"]
        job_id = item["job_id"]
        word = item["word_text"]
        job_status = item.get("job_status")

        # Never resurrect items of a finished or cancelled job
        if job_status not in JobStatus.PROCESSABLE:
            logger.info(
                f"Skipping item {item_id} as parent job {job_id} is not in a processable state ({job_status})"
            )
            await self.item_repo.mark_failed(item_id, PARENT_NOT_PROCESSABLE)
            return ItemOutcome.SKIPPED

        if job_status == JobStatus.PENDING:
            await self.job_repo.mark_in_progress(job_id)

        if not await self.item_repo.claim_item(item_id):
            logger.warning(f"Item {item_id} is no longer pending, skipping")
            return ItemOutcome.ABANDONED

        logger.info(f"Processing item {item_id}: '{word}' for job {job_id}")

        try:
            analysis = await self.generator.generate(word)
        except GenerationError as e:
            return await self._retry_or_fail(item, str(e), e.transient)
        except RedisError as e:
            # Raised by the shared rate limiter before any Gemini call
            return await self._retry_or_fail(item, f"Rate limiter unavailable: {e}", True)

        try:
            saved = await self.word_repo.save_analysis(analysis)
        except Exception as e:
            logger.exception(f"Error persisting results for item {item_id}: {e}")
            return await self._fail(item, f"Failed to save word: {e}")

        result_reference = saved[0][0] if saved else None
        await self.item_repo.mark_completed(item_id, result_reference)
        await self.job_repo.record_item_result(job_id, succeeded=True)

        created = sum(1 for _, is_new in saved if is_new)
        logger.info(
            f"Successfully processed item {item_id} ('{word}'): "
            f"{len(saved)} definition(s), {created} new"
        )
        return ItemOutcome.SUCCEEDED

    async def _retry_or_fail(self, item: Dict[str, Any], error: str, transient: bool) -> str:
        if transient and item.get("retry_count", 0) < self.max_retries:
            return await self._requeue(item, error)
        return await self._fail(item, error)

    async def _requeue(self, item: Dict[str, Any], error: str) -> str:
        """Send an item back to the queue with exponential backoff."""
        retry_count = item.get("retry_count", 0)
        delay = calculate_exponential_backoff(
            retry_count,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay
        )
        await self.item_repo.requeue_item(item["_id"], error, delay)
        logger.warning(
            f"Retrying item {item['_id']} in {delay}s "
            f"(attempt {retry_count + 1}/{self.max_retries}): {error}"
        )
        return ItemOutcome.REQUEUED

    async def _fail(self, item: Dict[str, Any], error: str) -> str:
        """Mark an item failed and count it against its job."""
        message = truncate_text(error, settings.error_message_max_length)
        await self.item_repo.mark_failed(item["_id"], message)
        await self.job_repo.record_item_result(item["job_id"], succeeded=False)
        logger.error(f"Item {item['_id']} ('{item['word_text']}') failed: {message}")
        return ItemOutcome.FAILED
