"""Shared utility functions."""
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

WORD_PATTERN = re.compile(r"^[a-zA-Z\s\-']+$")
MAX_WORD_LENGTH = 50


def generate_job_id() -> str:
    """Generate a unique job ID."""
    return f"job_{uuid.uuid4().hex[:12]}"


def generate_item_id() -> str:
    """Generate a unique job item ID."""
    return f"item_{uuid.uuid4().hex[:12]}"


def generate_word_id() -> str:
    """Generate a unique word definition ID."""
    return f"word_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_word(word: str) -> str:
    """Normalize a word for storage and comparison."""
    return word.strip().lower()


def is_valid_word(word: str) -> bool:
    """Check that a normalized word is plain English text of sane length."""
    if not word or len(word) > MAX_WORD_LENGTH:
        return False
    return bool(WORD_PATTERN.match(word))


def truncate_text(text: Optional[str], max_length: int) -> Optional[str]:
    """Truncate text to max_length characters."""
    if text is None:
        return None
    if len(text) <= max_length:
        return text
    return text[:max_length]


def calculate_exponential_backoff(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """Calculate exponential backoff delay."""
    delay = base_delay * (2 ** attempt)
    return min(delay, max_delay)
