"""Prompt templates for the word generator."""

WORD_ANALYSIS_PROMPT_TEMPLATE = """Analyze the English word "{word}" for English learners.

1. Determine the difficulty level of the word (beginner, intermediate or advanced).
2. Identify the distinct common senses of the word (maximum {max_senses}).
3. For every sense provide:
   - "part_of_speech": noun, verb, adjective, adverb, preposition, conjunction or interjection
   - "definition": a short dictionary-style definition of this sense
   - "example_sentence": one natural English sentence using the word in this sense
   - "translation": the {language} translation of the word in this sense
   - "options": four short answers to the question "What is the meaning of '{word}' in the example sentence?"
     exactly one of which is correct
   - "correct_option": the letter (A, B, C or D) of the correct answer in "options"

Respond ONLY with a valid JSON object in this exact format:
{{
  "word": "{word}",
  "difficulty": "beginner|intermediate|advanced",
  "senses": [
    {{
      "part_of_speech": "noun",
      "definition": "...",
      "example_sentence": "...",
      "translation": "...",
      "options": ["...", "...", "...", "..."],
      "correct_option": "A"
    }}
  ]
}}"""


def build_word_prompt(word: str, language: str, max_senses: int = 6) -> str:
    """Render the analysis prompt for a single word."""
    return WORD_ANALYSIS_PROMPT_TEMPLATE.format(
        word=word,
        language=language,
        max_senses=max_senses
    )
