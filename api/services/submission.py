"""Batch submission service: validates a word list and queues it as a job."""
import logging
from typing import Any, Dict, List, Optional

from database.repositories.job_repo import JobRepository, JobStatus
from database.repositories.job_item_repo import JobItemRepository
from shared.config import settings
from shared.utils import truncate_text

logger = logging.getLogger(__name__)


class WordListValidationError(Exception):
    """Raised when a submitted word list is rejected."""

    EMPTY_LIST = "empty_list"
    INVALID_ENTRY = "invalid_entry"
    TOO_MANY_WORDS = "too_many_words"

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


def validate_word_list(words: Any, max_words: int, allow_blank: bool = False) -> List[str]:
    """
    Validate a submitted word list and return the trimmed words.

    Raises WordListValidationError with a distinct reason for an empty or
    missing list, non-string (or blank, unless allowed) entries, and lists
    longer than max_words.
    """
    if not isinstance(words, list) or len(words) == 0:
        raise WordListValidationError(
            WordListValidationError.EMPTY_LIST,
            'Request body must contain a non-empty "words" array.'
        )

    for word in words:
        if not isinstance(word, str) or (not allow_blank and not word.strip()):
            raise WordListValidationError(
                WordListValidationError.INVALID_ENTRY,
                'All items in the "words" array must be non-empty strings.'
            )

    if len(words) > max_words:
        raise WordListValidationError(
            WordListValidationError.TOO_MANY_WORDS,
            f"Too many words submitted. Maximum allowed is {max_words} per request. "
            "Please submit in smaller batches."
        )

    return [word.strip() for word in words]


class BatchSubmissionService:
    """Creates a job and its items for a bulk word submission."""

    def __init__(
        self,
        job_repo: JobRepository,
        item_repo: JobItemRepository,
        max_words: Optional[int] = None
    ):
        self.job_repo = job_repo
        self.item_repo = item_repo
        self.max_words = max_words or settings.bulk_max_words

    async def submit(self, words: Any) -> Dict[str, Any]:
        """
        Validate and queue a word list. Returns the newly created job.

        If the items cannot be stored the job is kept and marked failed, and
        the original error is re-raised.
        """
        cleaned = validate_word_list(words, self.max_words)

        job = await self.job_repo.create_job(total_words=len(cleaned))
        job_id = job["_id"]

        try:
            await self.item_repo.create_items(job_id, cleaned)
        except Exception as e:
            logger.error(f"Error inserting words for job {job_id}: {e}")
            message = truncate_text(f"Failed to queue words: {e}", settings.error_message_max_length)
            await self.job_repo.mark_failed(job_id, message)
            raise

        logger.info(f"Bulk job {job_id} submitted with {len(cleaned)} words")
        return job
