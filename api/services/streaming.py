"""Streaming progress reporter for small interactive word submissions."""
import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple

from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from database.repositories.word_repo import WordRepository
from shared.config import settings
from shared.generator import GenerationError, WordAnalysis, WordGenerator, WordSense
from shared.utils import MAX_WORD_LENGTH, is_valid_word, normalize_word, truncate_text

logger = logging.getLogger(__name__)

DEFINITION_PREVIEW_LENGTH = 100


class StreamEvent:
    """Event type constants for the progress stream."""
    START = "start"
    PROGRESS = "progress"
    WORD_SUCCESS = "word_success"
    WORD_DUPLICATE = "word_duplicate"
    WORD_FAILED = "word_failed"
    COMPLETE = "complete"
    ERROR = "error"
    END = "end"


RESULT_KEYS = {
    StreamEvent.WORD_SUCCESS: "success",
    StreamEvent.WORD_DUPLICATE: "duplicate",
    StreamEvent.WORD_FAILED: "failed"
}


class StreamingProgressReporter:
    """
    Processes a word list in-process and yields progress events.

    Words are handled strictly one after another. The caller supplies an
    is_disconnected coroutine function which is checked before every word so
    an abandoned connection stops issuing generator calls.
    """

    def __init__(
        self,
        word_repo: WordRepository,
        generator: WordGenerator,
        word_delay: Optional[float] = None
    ):
        self.word_repo = word_repo
        self.generator = generator
        self.word_delay = word_delay if word_delay is not None else settings.stream_word_delay

    async def stream(
        self,
        words: List[str],
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None
    ) -> AsyncIterator[Dict[str, Any]]:
        """Yield start, per-word progress/result, complete and end events."""
        total = len(words)
        results = {"success": [], "duplicate": [], "failed": []}

        yield {"type": StreamEvent.START, "total": total, "message": f"Processing {total} word(s)"}

        try:
            for current, raw_word in enumerate(words, start=1):
                if is_disconnected is not None and await is_disconnected():
                    logger.info(f"Client disconnected, stopping after {current - 1}/{total} words")
                    return

                word = normalize_word(raw_word)
                yield {
                    "type": StreamEvent.PROGRESS,
                    "current": current,
                    "total": total,
                    "word": word,
                    "message": f"Processing: {word}"
                }

                event_type, entry = await self._process_word(word)
                results[RESULT_KEYS[event_type]].append(entry)
                yield {"type": event_type, **entry, "current": current, "total": total}

                if current < total and self.word_delay > 0:
                    await asyncio.sleep(self.word_delay)

        except Exception as e:
            logger.exception(f"Streaming submission failed: {e}")
            yield {"type": StreamEvent.ERROR, "error": "Server error", "message": str(e)}
            return

        summary = {key: len(entries) for key, entries in results.items()}
        summary["total"] = total

        yield {
            "type": StreamEvent.COMPLETE,
            "results": results,
            "summary": summary,
            "message": "All words processed"
        }
        yield {"type": StreamEvent.END}

    async def _process_word(self, word: str) -> Tuple[str, Dict[str, Any]]:
        """Generate and store one word. Returns (event type, result entry)."""
        if not word or len(word) > MAX_WORD_LENGTH:
            return StreamEvent.WORD_FAILED, {"word": word, "reason": "Invalid word format"}

        if not is_valid_word(word):
            return StreamEvent.WORD_FAILED, {"word": word, "reason": "Only English letters are accepted"}

        try:
            analysis = await self.generator.generate(word)
        except GenerationError as e:
            logger.warning(f"Generation failed for '{word}': {e}")
            return StreamEvent.WORD_FAILED, {"word": word, "reason": str(e)}
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable for '{word}': {e}")
            return StreamEvent.WORD_FAILED, {"word": word, "reason": f"Rate limiter unavailable: {e}"}

        if not analysis.senses:
            return StreamEvent.WORD_FAILED, {"word": word, "reason": "No definitions were generated"}

        try:
            saved = await self._save_new_senses(analysis)
        except PyMongoError as e:
            logger.error(f"Database error while saving '{word}': {e}")
            return StreamEvent.WORD_FAILED, {"word": word, "reason": f"Database error: {e}"}

        if not saved:
            return StreamEvent.WORD_DUPLICATE, {
                "word": word,
                "reason": "This word is already stored with the same definitions"
            }

        first = saved[0]
        return StreamEvent.WORD_SUCCESS, {
            "word": word,
            "part_of_speech": first.part_of_speech,
            "definition": truncate_text(first.definition, DEFINITION_PREVIEW_LENGTH),
            "created": len(saved)
        }

    async def _save_new_senses(self, analysis: WordAnalysis) -> List[WordSense]:
        """Store the senses not yet in the store; returns the ones created."""
        saved = []
        for sense in analysis.senses:
            if await self.word_repo.definition_exists(analysis.word, sense.part_of_speech, sense.definition):
                continue
            _, created = await self.word_repo.save_definition(analysis.word, analysis.difficulty, sense)
            if created:
                saved.append(sense)
        return saved
