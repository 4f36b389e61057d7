"""Shared test fixtures."""
from __future__ import annotations

import pytest

from lesson_quiz.models import QuizDefinition, QuizOption, QuizQuestion


def make_quiz(correct_indices: list[int], n_options: int = 2, **meta) -> QuizDefinition:
    """Build a quiz whose question i has its correct option at correct_indices[i]."""
    questions = []
    for qi, ci in enumerate(correct_indices):
        questions.append(QuizQuestion(
            question=f"Question {qi + 1}?",
            options=tuple(
                QuizOption(
                    text=f"Q{qi + 1} option {oi}",
                    correct=oi == ci,
                    explanation=f"Q{qi + 1}: option {ci} is right." if oi == ci else "",
                )
                for oi in range(n_options)
            ),
        ))
    return QuizDefinition(questions=tuple(questions), **meta)


@pytest.fixture
def three_question_quiz():
    """Three questions, two options each, correct answers at [0, 1, 0]."""
    return make_quiz([0, 1, 0], title="Photosynthesis", difficulty="easy", topic="Biology")


@pytest.fixture
def quiz_payload():
    """JSON shape of a quiz as produced by the generation collaborator."""
    return {
        "title": "The Water Cycle",
        "description": "How water moves through the environment.",
        "difficulty": "medium",
        "topic": "Earth science",
        "creator_name": "bob",
        "questions": [
            {
                "question": "What drives evaporation?",
                "options": [
                    {"text": "Solar energy", "correct": True, "explanation": "The sun heats surface water."},
                    {"text": "The moon", "correct": False, "explanation": "The moon drives tides."},
                    {"text": "Wind alone", "correct": False, "explanation": "Wind helps, but heat drives it."},
                ],
            },
            {
                "question": "What is water falling from clouds called?",
                "options": [
                    {"text": "Condensation", "correct": False, "explanation": "That forms the clouds."},
                    {"text": "Precipitation", "correct": True, "explanation": "Rain, snow, sleet and hail."},
                ],
            },
        ],
    }


class FakeNotifier:
    def __init__(self, error: Exception | None = None):
        self.awards = []
        self._error = error

    def __call__(self, award) -> None:
        self.awards.append(award)
        if self._error:
            raise self._error


class FakeScoreSubmitter:
    """Records every submission; optionally fails or rejects."""

    def __init__(self, result: bool = True, error: Exception | None = None):
        self.calls = []
        self._result = result
        self._error = error

    def __call__(self, score, question_count, summary):
        self.calls.append((score, question_count, summary))
        if self._error:
            raise self._error
        return self._result

    async def submit(self, score, question_count, summary):
        return self(score, question_count, summary)

    def name(self) -> str:
        return "fake-score"


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def submitter():
    return FakeScoreSubmitter()
