"""Word repository for the generated definition records."""
import re
from typing import Optional, List, Dict, Any, Tuple
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from shared.generator import WordAnalysis, WordSense
from shared.utils import generate_word_id, get_utc_now, normalize_word


class WordRepository:
    """Repository for WordDefinitionRecord CRUD operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.words

    async def save_definition(
        self,
        word: str,
        difficulty: str,
        sense: WordSense,
        source: str = "gemini"
    ) -> Tuple[str, bool]:
        """
        Store one sense of a word. Returns (record_id, created).

        When the (word, part of speech, definition) triple already exists the
        existing record's ID is returned with created=False.
        """
        now = get_utc_now()
        record = {
            "_id": generate_word_id(),
            "word": normalize_word(word),
            "part_of_speech": sense.part_of_speech,
            "difficulty": difficulty,
            "definition": sense.definition,
            "example_sentence": sense.example_sentence,
            "translation": sense.translation,
            "options": sense.options,
            "correct_option": sense.correct_option,
            "regeneration_note": None,
            "source": source,
            "is_active": True,
            "created_at": now,
            "updated_at": now
        }

        try:
            await self.collection.insert_one(record)
            return record["_id"], True
        except DuplicateKeyError:
            existing = await self.find_definition(
                record["word"], sense.part_of_speech, sense.definition
            )
            if existing is None:
                raise
            return existing["_id"], False

    async def save_analysis(self, analysis: WordAnalysis) -> List[Tuple[str, bool]]:
        """Store every sense of an analysis, in order."""
        saved = []
        for sense in analysis.senses:
            saved.append(await self.save_definition(analysis.word, analysis.difficulty, sense))
        return saved

    async def find_definition(
        self,
        word: str,
        part_of_speech: str,
        definition: str
    ) -> Optional[Dict[str, Any]]:
        """Find the record for a (word, part of speech, definition) triple."""
        return await self.collection.find_one({
            "word": normalize_word(word),
            "part_of_speech": part_of_speech,
            "definition": definition
        })

    async def definition_exists(self, word: str, part_of_speech: str, definition: str) -> bool:
        """Check if a sense is already stored."""
        count = await self.collection.count_documents({
            "word": normalize_word(word),
            "part_of_speech": part_of_speech,
            "definition": definition
        })
        return count > 0

    async def list_words(
        self,
        search: Optional[str] = None,
        difficulty: Optional[str] = None,
        limit: int = 20,
        skip: int = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        """List active definitions, newest first. Returns (records, total)."""
        query: Dict[str, Any] = {"is_active": True}
        if search:
            pattern = re.escape(search.strip())
            query["$or"] = [
                {"word": {"$regex": pattern, "$options": "i"}},
                {"translation": {"$regex": pattern, "$options": "i"}}
            ]
        if difficulty:
            query["difficulty"] = difficulty

        total = await self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("created_at", -1).skip(skip).limit(limit)
        return await cursor.to_list(length=limit), total

    async def get_random_words(
        self,
        limit: int = 10,
        difficulty: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Sample random active definitions for quizzes."""
        match: Dict[str, Any] = {"is_active": True}
        if difficulty:
            match["difficulty"] = difficulty

        cursor = self.collection.aggregate([
            {"$match": match},
            {"$sample": {"size": limit}}
        ])
        return await cursor.to_list(length=limit)

    async def stats(self) -> Dict[str, Any]:
        """
        Summarize the active definitions.

        Returns total_words plus by_part_of_speech and by_difficulty, each a
        list of {value, count} sorted by count, highest first.
        """
        total = await self.collection.count_documents({"is_active": True})
        return {
            "total_words": total,
            "by_part_of_speech": await self._count_by("part_of_speech", "unknown"),
            "by_difficulty": await self._count_by("difficulty", "intermediate")
        }

    async def _count_by(self, field: str, missing: str) -> List[Dict[str, Any]]:
        cursor = self.collection.aggregate([
            {"$match": {"is_active": True}},
            {"$group": {"_id": {"$ifNull": [f"${field}", missing]}, "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}}
        ])
        rows = await cursor.to_list(length=None)
        return [{"value": row["_id"], "count": row["count"]} for row in rows]
