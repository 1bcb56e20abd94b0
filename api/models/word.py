"""Word definition model definitions."""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class WordDefinitionModel(BaseModel):
    """One generated sense of a word, with its quiz question material."""
    id: str = Field(alias="_id")
    word: str
    part_of_speech: str
    difficulty: str
    definition: str
    example_sentence: str
    translation: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    correct_option: str
    regeneration_note: Optional[str] = None
    source: str = "gemini"
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
