"""
Configuration constants for the MCQ Question Bank pipeline.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

# Directory paths
PROJECT_ROOT = Path(__file__).parent
OUTPUT_DIR = PROJECT_ROOT / "output"
DATABASE_PATH = Path(os.environ.get("MCQ_DATABASE_PATH", OUTPUT_DIR / "mcq_questions.db"))

# Gemini configuration
GEMINI_API_KEY_ENV = "GEMINI_API_KEY"
GEMINI_MODEL = "gemini-2.5-flash"

# Gemini 2.5 Flash pricing, USD per 1M tokens (estimation only)
PRICE_PER_1M_INPUT_TOKENS = 0.30
PRICE_PER_1M_OUTPUT_TOKENS = 2.50

# PDF processing settings
PDF_SCALE = 2.0  # multiplier on the 72 DPI page size
PDF_IMAGE_FORMAT = "png"

# Pause between page requests to stay friendly with the API rate limit
PAGE_REQUEST_DELAY = 0.1

# Explanation backfill: save a checkpoint every N successful questions
DEFAULT_BATCH_SIZE = 10

# How much raw model output to keep in parse errors
PARSE_ERROR_SNIPPET_LENGTH = 500

# Choice labels used in explanation prompts and console output
CHOICE_LABELS = ["A", "B", "C", "D", "E", "F", "G", "H"]


def get_api_key() -> Optional[str]:
    """Return the Gemini API key from the environment, if set."""
    return os.environ.get(GEMINI_API_KEY_ENV) or None


# Vision model prompts
QUESTION_EXTRACTION_PROMPT = """Extract all MCQ (multiple choice) questions from this exam page.

For each question, provide:
- questionText: The complete question text
- choices: Array of all answer options (usually A, B, C, D, E). Include the full text of each option, NOT the letter prefix.
- correctChoice: The 0-based index of the correct answer if marked/highlighted on the page, or null if not indicated

Important:
- Extract EVERY question visible on the page
- If a question continues from a previous page, extract whatever is visible
- Choices should be the actual text, not "A", "B", etc.
- correctChoice is 0 for first option, 1 for second, etc.
- If the correct answer is circled, highlighted, or marked, identify it
- If no answer is marked, set correctChoice to null

Return ONLY valid JSON in this exact format:
{
  "questions": [
    {
      "questionText": "Which structure passes through the foramen magnum?",
      "choices": ["Internal carotid artery", "Medulla oblongata", "Glossopharyngeal nerve", "Vertebral artery only"],
      "correctChoice": 1
    }
  ]
}

If no questions are found on this page, return: { "questions": [] }"""


EXPLANATION_PROMPT = """You are a medical education expert. Generate a clear, concise explanation for this USMLE-style MCQ question.

QUESTION:
{question_text}

CHOICES:
{choices_text}

CORRECT ANSWER: {correct_answer}

Instructions:
1. Explain WHY the correct answer is correct
2. Briefly explain why the other options are incorrect (1-2 sentences each)
3. Include any relevant clinical pearls or high-yield facts
4. Keep the explanation focused and exam-relevant (aim for 150-250 words)
5. Use clear medical terminology

Respond with a JSON object in this exact format:
{{
  "explanation": "Your explanation here..."
}}"""
