# TriviaCore - Trivia Questions API
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Sample questions served when the database yields nothing usable."""

from typing import Any, Final

SAMPLE_QUESTIONS: Final[tuple[dict[str, Any], ...]] = (
    {
        "id": 1,
        "question": "What is the capital of France?",
        "options": ["London", "Paris", "Berlin", "Madrid"],
        "correct_answer": 1,
        "text_hint": "This city is known as the City of Light",
        "image_hint": None,
        "explanation": "Paris is the capital and largest city of France",
        "category": "Geography",
        "difficulty": "Easy",
    },
    {
        "id": 2,
        "question": "Which planet is known as the Red Planet?",
        "options": ["Venus", "Mars", "Jupiter", "Saturn"],
        "correct_answer": 1,
        "text_hint": "This planet's color comes from iron oxide",
        "image_hint": None,
        "explanation": "Mars appears red due to iron oxide (rust) on its surface",
        "category": "Science",
        "difficulty": "Easy",
    },
    {
        "id": 3,
        "question": "What is the largest mammal on Earth?",
        "options": ["African Elephant", "Blue Whale", "Giraffe", "Hippopotamus"],
        "correct_answer": 1,
        "text_hint": "This animal lives in the ocean",
        "image_hint": None,
        "explanation": "The Blue Whale is the largest animal known to have ever existed",
        "category": "Science",
        "difficulty": "Easy",
    },
)
