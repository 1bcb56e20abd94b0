"""Gemini client that turns a word into structured definition and quiz data."""
import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from shared.config import settings
from shared.prompts import build_word_prompt
from shared.utils import normalize_word

logger = logging.getLogger(__name__)

VALID_DIFFICULTIES = ("beginner", "intermediate", "advanced")
DEFAULT_DIFFICULTY = "intermediate"
OPTION_LETTERS = ("A", "B", "C", "D")


class GenerationError(Exception):
    """Raised when word generation fails."""

    transient = False


class GenerationTimeoutError(GenerationError):
    """Raised when the Gemini call times out."""

    transient = True


class GenerationRateLimitError(GenerationError):
    """Raised when Gemini answers with HTTP 429."""

    transient = True


class GenerationNetworkError(GenerationError):
    """Raised when Gemini cannot be reached."""

    transient = True


class GenerationServiceError(GenerationError):
    """Raised when Gemini answers with an HTTP error status."""

    def __init__(self, status: int, detail: str = ""):
        self.status = status
        self.transient = status >= 500
        message = f"Gemini API error {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class GenerationParseError(GenerationError):
    """Raised when the Gemini response cannot be turned into word senses."""


@dataclass
class WordSense:
    """One sense of a word, with its quiz question material."""
    part_of_speech: str
    definition: str
    example_sentence: str
    options: List[str]
    correct_option: str
    translation: Optional[str] = None


@dataclass
class WordAnalysis:
    """Everything the generator produced for one word."""
    word: str
    difficulty: str
    senses: List[WordSense] = field(default_factory=list)
    dropped_senses: int = 0


class WordGenerator:
    """Client for the Gemini generateContent REST endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
        rate_limiter=None,
        language: Optional[str] = None
    ):
        self.api_key = api_key or settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.timeout = timeout or settings.generation_timeout
        self.language = language or settings.translation_language
        self.api_base = settings.gemini_api_base.rstrip("/")
        self.rate_limiter = rate_limiter

    async def generate(self, word: str) -> WordAnalysis:
        """
        Generate definitions, examples, translations and quiz options for a word.

        Raises GenerationError (or a subclass) when the call or parsing fails.
        An empty "senses" list is returned as an analysis without senses.
        """
        if not self.api_key:
            raise GenerationError("Gemini API key is not configured")

        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        logger.info(f"Requesting analysis for '{word}' from {self.model}")
        prompt = build_word_prompt(word, self.language)
        text = await self._request(prompt)
        analysis = parse_analysis(extract_json(text), word)

        if analysis.dropped_senses:
            logger.warning(
                f"Dropped {analysis.dropped_senses} incomplete sense(s) for '{word}'"
            )
        return analysis

    async def _request(self, prompt: str) -> str:
        """Send the prompt to Gemini and return the generated text."""
        url = f"{self.api_base}/models/{self.model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.generation_temperature,
                "maxOutputTokens": 2048,
                "responseMimeType": "application/json"
            }
        }

        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.post(url, params={"key": self.api_key}, json=body) as response:
                    if response.status == 429:
                        raise GenerationRateLimitError("Gemini rate limit exceeded (HTTP 429)")

                    if response.status >= 400:
                        detail = await response.text()
                        raise GenerationServiceError(response.status, detail[:200])

                    payload = await response.json(content_type=None)

        except asyncio.TimeoutError:
            raise GenerationTimeoutError(f"Timeout after {self.timeout} seconds")
        except aiohttp.ClientError as e:
            raise GenerationNetworkError(f"Network error: {str(e)}")
        except ValueError as e:
            raise GenerationParseError(f"Gemini returned invalid JSON: {str(e)}")

        return extract_candidate_text(payload)


def extract_candidate_text(payload: Dict[str, Any]) -> str:
    """Pull the generated text out of a generateContent response body."""
    candidates = payload.get("candidates") or []
    if not candidates:
        raise GenerationParseError("Gemini returned no candidates")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    if not text.strip():
        raise GenerationParseError("Gemini returned an empty candidate")
    return text


def extract_json(content: str) -> Dict[str, Any]:
    """
    Extract a JSON object from generated text.

    The text might be wrapped in markdown code fences or surrounded by prose.
    """
    try:
        data = json.loads(content)
        if isinstance(data, dict):
            return data
    except (json.JSONDecodeError, TypeError):
        pass

    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", content)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError:
            pass

    raw = re.search(r"\{[\s\S]*\}", content)
    if raw:
        try:
            return json.loads(raw.group(0))
        except json.JSONDecodeError:
            pass

    raise GenerationParseError(f"Could not extract JSON from response: {content[:200]}")


def parse_analysis(data: Dict[str, Any], word: str) -> WordAnalysis:
    """
    Validate the parsed JSON and build a WordAnalysis.

    Incomplete senses are dropped. The word only fails when senses were
    returned and none of them survived.
    """
    raw_senses = data.get("senses")
    if raw_senses is None:
        raise GenerationParseError("Response missing 'senses' field")
    if not isinstance(raw_senses, list):
        raise GenerationParseError("Response field 'senses' is not a list")

    difficulty = _clean(data.get("difficulty")).lower()
    if difficulty not in VALID_DIFFICULTIES:
        logger.warning(f"Invalid difficulty '{difficulty}' for '{word}', using '{DEFAULT_DIFFICULTY}'")
        difficulty = DEFAULT_DIFFICULTY

    senses = []
    for raw in raw_senses:
        sense = _parse_sense(raw)
        if sense is not None:
            senses.append(sense)

    if raw_senses and not senses:
        raise GenerationParseError(
            f"None of the {len(raw_senses)} generated senses for '{word}' were complete"
        )

    return WordAnalysis(
        word=normalize_word(word),
        difficulty=difficulty,
        senses=senses,
        dropped_senses=len(raw_senses) - len(senses)
    )


def _parse_sense(raw: Any) -> Optional[WordSense]:
    if not isinstance(raw, dict):
        return None

    part_of_speech = _clean(raw.get("part_of_speech")).lower()
    definition = _clean(raw.get("definition"))
    example_sentence = _clean(raw.get("example_sentence"))
    if not (part_of_speech and definition and example_sentence):
        return None

    options = raw.get("options")
    if not isinstance(options, list) or len(options) != len(OPTION_LETTERS):
        return None
    options = [_clean(option) for option in options]
    if not all(options):
        return None

    correct_option = _clean(raw.get("correct_option")).upper()
    if correct_option not in OPTION_LETTERS:
        return None

    return WordSense(
        part_of_speech=part_of_speech,
        definition=definition,
        example_sentence=example_sentence,
        options=options,
        correct_option=correct_option,
        translation=_clean(raw.get("translation")) or None
    )


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
