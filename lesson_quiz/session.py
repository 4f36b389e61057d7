"""Quiz session engine: answer selection, grading, bonus award and score recording."""
from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from threading import Lock

from lesson_quiz.models import DIFFICULTIES, QuizDefinition, SummaryContext, single_correct_violations
from lesson_quiz.summary import (
    NO_EXPLANATION,
    build_summary_context,
    grade,
    score_message,
    submit_label,
)

_log = logging.getLogger("lesson_quiz.session")

ScoreCallback = Callable[[int, int, SummaryContext], "bool | None | Awaitable[bool | None]"]


class QuizSessionError(Exception):
    """Base class for rejected session operations."""


class InvalidIndex(QuizSessionError, IndexError):
    pass


class IncompleteAnswers(QuizSessionError):
    def __init__(self, answered: int, total: int):
        super().__init__(f"answered {answered} of {total} questions")
        self.answered = answered
        self.total = total


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    GRADED = "graded"


@dataclass(frozen=True)
class BonusAward:
    points: int
    viewer: str
    author: str
    message: str
    description: str = "Playing assessments created by others helps you earn Learn Points!"


@dataclass(frozen=True)
class SubmitResult:
    score: int
    question_count: int
    bonus_awarded: bool  # True only on the call that granted it
    award: BonusAward | None = None


@dataclass(frozen=True)
class _RecordClaim:
    generation: int
    score: int
    question_count: int
    title: str
    summary: SummaryContext


@dataclass(frozen=True)
class QuestionFeedback:
    question_index: int
    selected_index: int | None
    correct_index: int | None
    is_correct: bool
    show_correct_answer: bool
    correct_answer: str
    explanation_visible: bool
    explanation: str


def is_external(viewer: str | None, author: str | None) -> bool:
    return bool(viewer) and bool(author) and viewer != author


class QuizSession:
    """One learner's playthrough of a QuizDefinition.

    Every flag check-and-set runs under ``self._lock`` so redundant or
    near-simultaneous calls from the presentation layer cannot grade twice,
    award the bonus twice or submit the score twice.
    """

    def __init__(
        self,
        quiz: QuizDefinition,
        viewer: str | None = None,
        author: str | None = None,
        bonus_notifier: Callable[[BonusAward], None] | None = None,
        bonus_points: int = 1,
    ) -> None:
        self._lock = Lock()
        self.viewer = viewer
        self.author = author
        self.is_external = is_external(viewer, author)
        self._bonus_notifier = bonus_notifier
        self._bonus_points = bonus_points
        self._generation = 0
        self._set_quiz(quiz)

    def _set_quiz(self, quiz: QuizDefinition) -> None:
        problems = single_correct_violations(quiz)
        if problems:
            _log.warning("Quiz %r breaks the one-correct-option rule: %s", quiz.title, "; ".join(problems))
        self.quiz = quiz
        self.state = SessionState.NOT_STARTED
        self.selected_difficulty = quiz.difficulty or "medium"
        self._clear()

    def _clear(self) -> None:
        self.answers: dict[int, int] = {}
        self.score: int | None = None
        self.revealed_explanations: set[int] = set()
        self.bonus_awarded = False
        self.score_recorded = False
        self._generation += 1

    # ── Lifecycle ─────────────────────────────────────────────────────────

    @property
    def graded(self) -> bool:
        return self.state is SessionState.GRADED

    @property
    def question_count(self) -> int:
        return self.quiz.question_count

    def start(self, difficulty: str | None = None) -> None:
        """Pass the start gate. Ignored once the session is under way."""
        if difficulty is not None and difficulty not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {difficulty}")
        with self._lock:
            if self.state is not SessionState.NOT_STARTED:
                return
            if difficulty is not None:
                self.selected_difficulty = difficulty
            self.state = SessionState.IN_PROGRESS

    def reset(self) -> None:
        with self._lock:
            self._clear()
            self.state = SessionState.IN_PROGRESS

    def replace_quiz(self, quiz: QuizDefinition, author: str | None = None) -> None:
        """Swap in a new quiz. The author falls back to the quiz's creator_name."""
        with self._lock:
            self.author = author or quiz.creator_name or None
            self.is_external = is_external(self.viewer, self.author)
            self._set_quiz(quiz)

    # ── Answering & grading ───────────────────────────────────────────────

    def select_answer(self, question_index: int, option_index: int) -> bool:
        """Record a selection. Returns False when ignored because already graded."""
        with self._lock:
            if self.state is SessionState.GRADED:
                return False
            if not 0 <= question_index < self.question_count:
                raise InvalidIndex(f"question index {question_index} out of range 0..{self.question_count - 1}")
            n_options = len(self.quiz.questions[question_index].options)
            if not 0 <= option_index < n_options:
                raise InvalidIndex(
                    f"option index {option_index} out of range 0..{n_options - 1} for question {question_index}"
                )
            self.state = SessionState.IN_PROGRESS
            self.answers[question_index] = option_index
            return True

    def answered_count(self) -> int:
        return sum(1 for i in range(self.question_count) if i in self.answers)

    def is_complete(self) -> bool:
        return self.answered_count() == self.question_count

    def submit_label(self) -> str:
        return submit_label(self.answered_count(), self.question_count)

    def submit(self) -> SubmitResult:
        award = None
        with self._lock:
            if self.state is SessionState.GRADED:
                return SubmitResult(self.score, self.question_count, bonus_awarded=False)
            answered = self.answered_count()
            if answered < self.question_count:
                raise IncompleteAnswers(answered, self.question_count)

            self.score = grade(self.quiz, self.answers)
            self.state = SessionState.GRADED
            if self.is_external and not self.bonus_awarded:
                self.bonus_awarded = True
                award = BonusAward(
                    points=self._bonus_points,
                    viewer=self.viewer,
                    author=self.author,
                    message=f"You earned {self._bonus_points} Learn Point{'s' if self._bonus_points != 1 else ''}!",
                )
            result = SubmitResult(self.score, self.question_count, bonus_awarded=award is not None, award=award)

        _log.info("Graded %r: %d/%d", self.quiz.title, result.score, result.question_count)
        if award is not None and self._bonus_notifier is not None:
            try:
                self._bonus_notifier(award)
            except Exception as e:
                _log.warning("Bonus notifier failed: %s", e)
        return result

    def score_message(self) -> str | None:
        if self.score is None:
            return None
        return score_message(self.score, self.question_count)

    # ── Score recording ───────────────────────────────────────────────────

    def _claim_record(self) -> _RecordClaim | None:
        with self._lock:
            if self.state is not SessionState.GRADED or self.score_recorded:
                return None
            self.score_recorded = True
            return _RecordClaim(
                generation=self._generation,
                score=self.score,
                question_count=self.question_count,
                title=self.quiz.title,
                summary=build_summary_context(self.quiz, self.answers, self.score),
            )

    def _release_record(self, claim: _RecordClaim) -> None:
        with self._lock:
            # A reset or replace since the claim owns the flag now
            if claim.generation == self._generation:
                self.score_recorded = False

    def record_score(self, collaborator: ScoreCallback) -> bool:
        """Hand the score to *collaborator* at most once.

        Returns True if the collaborator was called and reported success,
        False if the session is not graded or the score was already
        recorded.  A collaborator that raises or returns False releases the
        claim so the caller may retry.
        """
        claim = self._claim_record()
        if claim is None:
            return False
        try:
            ok = collaborator(claim.score, claim.question_count, claim.summary)
            if inspect.isawaitable(ok):
                if inspect.iscoroutine(ok):
                    ok.close()
                raise TypeError("async score collaborator passed to record_score; use record_score_async")
        except Exception:
            self._release_record(claim)
            raise
        return self._finish_record(claim, ok)

    async def record_score_async(self, collaborator: ScoreCallback) -> bool:
        claim = self._claim_record()
        if claim is None:
            return False
        try:
            ok = collaborator(claim.score, claim.question_count, claim.summary)
            if inspect.isawaitable(ok):
                ok = await ok
        except BaseException:
            self._release_record(claim)
            raise
        return self._finish_record(claim, ok)

    def _finish_record(self, claim: _RecordClaim, ok: bool | None) -> bool:
        if ok is False:
            _log.warning("Score submission rejected for %r; will allow retry", claim.title)
            self._release_record(claim)
            return False
        _log.info("Score recorded for %r: %d/%d", claim.title, claim.score, claim.question_count)
        return True

    # ── Queries ───────────────────────────────────────────────────────────

    def toggle_explanation(self, question_index: int) -> bool:
        """Flip the explanation panel for a question; returns the new visibility."""
        with self._lock:
            if question_index in self.revealed_explanations:
                self.revealed_explanations.discard(question_index)
                return False
            self.revealed_explanations.add(question_index)
            return True

    def build_summary_context(self) -> SummaryContext:
        return build_summary_context(self.quiz, self.answers, self.score)

    def feedback(self, question_index: int) -> QuestionFeedback:
        if not 0 <= question_index < self.question_count:
            raise InvalidIndex(f"question index {question_index} out of range 0..{self.question_count - 1}")
        q = self.quiz.questions[question_index]
        selected = self.answers.get(question_index)
        correct = q.correct_option()
        is_correct = selected is not None and q.options[selected].correct
        return QuestionFeedback(
            question_index=question_index,
            selected_index=selected,
            correct_index=q.correct_index(),
            is_correct=is_correct,
            show_correct_answer=self.graded and selected is not None and not is_correct,
            correct_answer=correct.text if correct else "",
            explanation_visible=self.graded and question_index in self.revealed_explanations,
            explanation=(correct.explanation if correct else "") or NO_EXPLANATION,
        )
