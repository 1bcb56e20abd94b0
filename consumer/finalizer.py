"""Job finalizer: moves exhausted jobs to a terminal status."""
import logging
from typing import List, Dict, Any, Optional

from database.repositories.job_repo import JobRepository, JobStatus
from database.repositories.job_item_repo import JobItemRepository, JobItemStatus

logger = logging.getLogger(__name__)


class JobFinalizer:
    """
    Sweeps in_progress jobs whose items are all terminal.

    The job counters are the fast path. When they lag behind the items (a
    counter update was lost) the item counts win: the counters are rewritten
    from them and the job is finalized in the same sweep.
    """

    def __init__(self, job_repo: JobRepository, item_repo: JobItemRepository):
        self.job_repo = job_repo
        self.item_repo = item_repo

    async def sweep(self) -> List[Dict[str, Any]]:
        """Finalize every exhausted job. Returns [{job_id, status}] for each one finalized."""
        finalized = []
        jobs = await self.job_repo.list_in_progress_jobs()

        for job in jobs:
            job_id = job["_id"]
            try:
                counts = await self.item_repo.count_by_status(job_id)
            except Exception as e:
                logger.error(f"Error counting items for job {job_id}: {e}")
                counts = None

            if job["processed_words"] < job["total_words"]:
                if not _items_settled(job, counts):
                    continue

                reconciled = await self.job_repo.reconcile_counters(
                    job_id,
                    succeeded=counts[JobItemStatus.COMPLETED],
                    failed=counts[JobItemStatus.FAILED]
                )
                if not reconciled:
                    continue
                logger.warning(
                    f"Job {job_id} counters lagged behind its items "
                    f"({job['processed_words']}/{job['total_words']}), reconciled from item counts"
                )

            if counts is None or counts[JobItemStatus.FAILED] > 0:
                status = JobStatus.COMPLETED_WITH_ERRORS
            else:
                status = JobStatus.COMPLETED

            if await self.job_repo.finalize_job(job_id, status):
                logger.info(f"Finalized job {job_id} with status {status}")
                finalized.append({"job_id": job_id, "status": status})

        return finalized


def _items_settled(job: Dict[str, Any], counts: Optional[Dict[str, int]]) -> bool:
    """True when every item of the job exists and is completed or failed."""
    if counts is None:
        return False
    if counts[JobItemStatus.PENDING] or counts[JobItemStatus.PROCESSING]:
        return False
    return counts[JobItemStatus.COMPLETED] + counts[JobItemStatus.FAILED] == job["total_words"]
