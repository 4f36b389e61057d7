from __future__ import annotations

from dataclasses import dataclass, field

DIFFICULTIES = ("easy", "medium", "hard")


class QuizFormatError(ValueError):
    """Raised when a quiz payload is structurally malformed."""


@dataclass(frozen=True)
class QuizOption:
    text: str
    correct: bool
    explanation: str = ""


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: tuple[QuizOption, ...]

    def correct_option(self) -> QuizOption | None:
        """First option flagged correct, or None."""
        return next((o for o in self.options if o.correct), None)

    def correct_index(self) -> int | None:
        return next((i for i, o in enumerate(self.options) if o.correct), None)


@dataclass(frozen=True)
class QuizDefinition:
    questions: tuple[QuizQuestion, ...]
    title: str | None = None
    description: str | None = None
    difficulty: str | None = None
    topic: str | None = None
    creator_name: str | None = None

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "topic": self.topic,
            "creator_name": self.creator_name,
            "questions": [
                {
                    "question": q.question,
                    "options": [
                        {"text": o.text, "correct": o.correct, "explanation": o.explanation}
                        for o in q.options
                    ],
                }
                for q in self.questions
            ],
        }


@dataclass
class QuestionResult:
    question_number: int
    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    explanation: str


@dataclass
class SummaryContext:
    total_questions: int
    score: int | None
    questions: list[QuestionResult] = field(default_factory=list)
    title: str | None = None
    difficulty: str | None = None
    topic: str | None = None

    def to_dict(self) -> dict:
        return {
            "total_questions": self.total_questions,
            "score": self.score,
            "questions": [
                {
                    "question_number": r.question_number,
                    "question": r.question,
                    "user_answer": r.user_answer,
                    "correct_answer": r.correct_answer,
                    "is_correct": r.is_correct,
                    "explanation": r.explanation,
                }
                for r in self.questions
            ],
            "title": self.title,
            "difficulty": self.difficulty,
            "topic": self.topic,
        }


def _optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise QuizFormatError(f"{key} must be a string (got {type(value).__name__})")
    return value


def _parse_option(raw: object, q_idx: int, o_idx: int) -> QuizOption:
    if not isinstance(raw, dict):
        raise QuizFormatError(f"question {q_idx} option {o_idx}: expected object, got {type(raw).__name__}")
    text = raw.get("text")
    if not isinstance(text, str):
        raise QuizFormatError(f"question {q_idx} option {o_idx}: text must be a string")
    correct = raw.get("correct", False)
    if not isinstance(correct, bool):
        raise QuizFormatError(f"question {q_idx} option {o_idx}: correct must be a boolean")
    explanation = raw.get("explanation") or ""
    if not isinstance(explanation, str):
        raise QuizFormatError(f"question {q_idx} option {o_idx}: explanation must be a string")
    return QuizOption(text=text, correct=correct, explanation=explanation)


def _parse_question(raw: object, q_idx: int) -> QuizQuestion:
    if not isinstance(raw, dict):
        raise QuizFormatError(f"question {q_idx}: expected object, got {type(raw).__name__}")
    prompt = raw.get("question")
    if not isinstance(prompt, str):
        raise QuizFormatError(f"question {q_idx}: question text must be a string")
    options = raw.get("options")
    if not isinstance(options, list) or not options:
        raise QuizFormatError(f"question {q_idx}: options must be a non-empty list")
    return QuizQuestion(
        question=prompt,
        options=tuple(_parse_option(o, q_idx, i) for i, o in enumerate(options)),
    )


def quiz_from_dict(data: dict) -> QuizDefinition:
    """Build a QuizDefinition from its JSON shape.

    Only structure is checked here. Questions that break the
    one-correct-option rule are accepted; see ``single_correct_violations``.
    """
    if not isinstance(data, dict):
        raise QuizFormatError(f"quiz must be an object, got {type(data).__name__}")
    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        raise QuizFormatError("questions must be a non-empty list")

    difficulty = _optional_str(data, "difficulty")
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise QuizFormatError(f"difficulty must be one of {', '.join(DIFFICULTIES)} (got {difficulty!r})")

    return QuizDefinition(
        questions=tuple(_parse_question(q, i) for i, q in enumerate(questions)),
        title=_optional_str(data, "title"),
        description=_optional_str(data, "description"),
        difficulty=difficulty,
        topic=_optional_str(data, "topic"),
        creator_name=_optional_str(data, "creator_name"),
    )


def single_correct_violations(quiz: QuizDefinition) -> list[str]:
    """Describe every question that does not have exactly one correct option."""
    problems = []
    for i, q in enumerate(quiz.questions):
        n = sum(1 for o in q.options if o.correct)
        if n != 1:
            problems.append(f"question {i}: {n} correct options")
    return problems
