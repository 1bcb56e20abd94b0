"""In-memory repositories and generator used by the service and worker tests."""
from collections import Counter
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from database.repositories.job_repo import JobStatus
from database.repositories.job_item_repo import JobItemStatus
from shared.generator import WordAnalysis, WordSense
from shared.utils import generate_item_id, generate_job_id, generate_word_id, get_utc_now, normalize_word


def make_sense(definition: str, part_of_speech: str = "noun") -> WordSense:
    return WordSense(
        part_of_speech=part_of_speech,
        definition=definition,
        example_sentence=f"An example using {definition}.",
        options=[definition, "wrong one", "wrong two", "wrong three"],
        correct_option="A",
        translation="ceviri"
    )


def make_analysis(word: str, *definitions: str) -> WordAnalysis:
    return WordAnalysis(
        word=word,
        difficulty="beginner",
        senses=[make_sense(definition) for definition in definitions]
    )


class FakeJobRepository:
    def __init__(self):
        self.jobs: Dict[str, Dict[str, Any]] = {}

    async def create_job(self, total_words: int) -> Dict[str, Any]:
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
        self.jobs[job["_id"]] = job
        return job

    async def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        return self.jobs.get(job_id)

    async def get_job_status(self, job_id: str) -> Optional[Dict[str, Any]]:
        job = self.jobs.get(job_id)
        if job is None:
            return None
        status = {key: value for key, value in job.items() if key != "_id"}
        status["job_id"] = job["_id"]
        status["pending_words"] = job["total_words"] - job["processed_words"]
        return status

    async def mark_in_progress(self, job_id: str) -> bool:
        job = self.jobs.get(job_id)
        if job is None or job["status"] != JobStatus.PENDING:
            return False
        job["status"] = JobStatus.IN_PROGRESS
        return True

    async def record_item_result(self, job_id: str, succeeded: bool) -> Optional[Dict[str, Any]]:
        job = self.jobs.get(job_id)
        if job is None or job["status"] not in JobStatus.PROCESSABLE:
            return None
        if job["processed_words"] >= job["total_words"]:
            return None
        job["processed_words"] += 1
        job["succeeded_words" if succeeded else "failed_words"] += 1
        return job

    async def reconcile_counters(self, job_id: str, succeeded: int, failed: int) -> bool:
        job = self.jobs.get(job_id)
        if job is None or job["status"] != JobStatus.IN_PROGRESS:
            return False
        if succeeded + failed > job["total_words"]:
            return False
        job["processed_words"] = succeeded + failed
        job["succeeded_words"] = succeeded
        job["failed_words"] = failed
        return True

    async def mark_failed(self, job_id: str, error_message: str) -> bool:
        job = self.jobs.get(job_id)
        if job is None or job["status"] != JobStatus.PENDING:
            return False
        job["status"] = JobStatus.FAILED
        job["error_message"] = error_message
        job["completed_at"] = get_utc_now()
        return True

    async def finalize_job(self, job_id: str, status: str) -> bool:
        job = self.jobs.get(job_id)
        if job is None or job["status"] != JobStatus.IN_PROGRESS:
            return False
        job["status"] = status
        job["completed_at"] = get_utc_now()
        return True

    async def cancel_job(self, job_id: str) -> bool:
        job = self.jobs.get(job_id)
        if job is None or job["status"] not in JobStatus.PROCESSABLE:
            return False
        job["status"] = JobStatus.CANCELLED
        return True

    async def list_in_progress_jobs(self) -> List[Dict[str, Any]]:
        return [dict(job) for job in self.jobs.values() if job["status"] == JobStatus.IN_PROGRESS]


class FakeJobItemRepository:
    def __init__(self, job_repo: FakeJobRepository):
        self.job_repo = job_repo
        self.items: Dict[str, Dict[str, Any]] = {}
        self.fail_on_create: Optional[Exception] = None
        self._sequence = 0

    async def create_items(self, job_id: str, words: List[str], chunk_size: Optional[int] = None) -> int:
        if self.fail_on_create is not None:
            raise self.fail_on_create
        now = get_utc_now()
        for word in words:
            self._sequence += 1
            item_id = generate_item_id()
            self.items[item_id] = {
                "_id": item_id,
                "job_id": job_id,
                "word_text": word,
                "status": JobItemStatus.PENDING,
                "processed_at": None,
                "error_message": None,
                "result_reference": None,
                "retry_count": 0,
                "available_at": now,
                "created_at": now + timedelta(microseconds=self._sequence),
                "updated_at": now
            }
        return len(words)

    def items_for(self, job_id: str) -> List[Dict[str, Any]]:
        items = [item for item in self.items.values() if item["job_id"] == job_id]
        return sorted(items, key=lambda item: item["created_at"])

    async def fetch_pending(self, limit: int) -> List[Dict[str, Any]]:
        now = get_utc_now()
        pending = [
            item for item in self.items.values()
            if item["status"] == JobItemStatus.PENDING and item["available_at"] <= now
        ]
        pending.sort(key=lambda item: item["created_at"])

        batch = []
        for item in pending[:limit]:
            job = self.job_repo.jobs.get(item["job_id"])
            batch.append({**item, "job_status": job["status"] if job else None})
        return batch

    async def claim_item(self, item_id: str) -> bool:
        item = self.items.get(item_id)
        if item is None or item["status"] != JobItemStatus.PENDING:
            return False
        item["status"] = JobItemStatus.PROCESSING
        item["processed_at"] = get_utc_now()
        return True

    async def mark_completed(self, item_id: str, result_reference: Optional[str]) -> bool:
        item = self.items.get(item_id)
        if item is None or item["status"] != JobItemStatus.PROCESSING:
            return False
        item["status"] = JobItemStatus.COMPLETED
        item["result_reference"] = result_reference
        item["error_message"] = None
        return True

    async def mark_failed(self, item_id: str, error_message: str) -> bool:
        item = self.items.get(item_id)
        if item is None or item["status"] not in (JobItemStatus.PENDING, JobItemStatus.PROCESSING):
            return False
        item["status"] = JobItemStatus.FAILED
        item["error_message"] = error_message
        return True

    async def requeue_item(self, item_id: str, error_message: str, delay: float) -> Optional[int]:
        item = self.items.get(item_id)
        if item is None or item["status"] != JobItemStatus.PROCESSING:
            return None
        item["status"] = JobItemStatus.PENDING
        item["retry_count"] += 1
        item["error_message"] = error_message
        item["available_at"] = get_utc_now() + timedelta(seconds=delay)
        return item["retry_count"]

    async def count_by_status(self, job_id: Optional[str] = None) -> Dict[str, int]:
        counts = {status: 0 for status in JobItemStatus.ALL}
        for item in self.items.values():
            if job_id is None or item["job_id"] == job_id:
                counts[item["status"]] += 1
        return counts

    async def release_stale(self, timeout: float) -> int:
        now = get_utc_now()
        released = 0
        for item in self.items.values():
            if item["status"] == JobItemStatus.PROCESSING and item["processed_at"] <= now - timedelta(seconds=timeout):
                item["status"] = JobItemStatus.PENDING
                item["retry_count"] += 1
                item["available_at"] = now
                released += 1
        return released

    def make_available(self):
        """Pretend every backoff delay has elapsed."""
        now = get_utc_now()
        for item in self.items.values():
            item["available_at"] = now


class FakeWordRepository:
    def __init__(self):
        self.records: Dict[Tuple[str, str, str], Dict[str, Any]] = {}

    async def save_definition(self, word: str, difficulty: str, sense: WordSense, source: str = "gemini") -> Tuple[str, bool]:
        key = (normalize_word(word), sense.part_of_speech, sense.definition)
        if key in self.records:
            return self.records[key]["_id"], False
        record_id = generate_word_id()
        self.records[key] = {
            "_id": record_id,
            "word": key[0],
            "part_of_speech": sense.part_of_speech,
            "difficulty": difficulty,
            "definition": sense.definition,
            "source": source
        }
        return record_id, True

    async def save_analysis(self, analysis: WordAnalysis) -> List[Tuple[str, bool]]:
        return [
            await self.save_definition(analysis.word, analysis.difficulty, sense)
            for sense in analysis.senses
        ]

    async def definition_exists(self, word: str, part_of_speech: str, definition: str) -> bool:
        return (normalize_word(word), part_of_speech, definition) in self.records

    async def stats(self) -> Dict[str, Any]:
        def count_by(field):
            counts = Counter(record[field] for record in self.records.values())
            ordered = sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))
            return [{"value": value, "count": count} for value, count in ordered]

        return {
            "total_words": len(self.records),
            "by_part_of_speech": count_by("part_of_speech"),
            "by_difficulty": count_by("difficulty")
        }


class FakeGenerator:
    """Returns canned analyses; a value that is an exception is raised instead."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None):
        self.responses = responses or {}
        self.calls: List[str] = []

    async def generate(self, word: str) -> WordAnalysis:
        self.calls.append(word)
        response = self.responses.get(word)
        if response is None:
            return make_analysis(word, f"meaning of {word}")
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def fail_first_call(target: Any, method_name: str, error: Exception):
    """Make target.method_name raise error once, then behave normally."""
    original = getattr(target, method_name)
    calls = []

    async def wrapper(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise error
        return await original(*args, **kwargs)

    setattr(target, method_name, wrapper)
    return calls
