"""Pure projections from a quiz and its answers to learner-facing results."""
from __future__ import annotations

from collections.abc import Mapping

from lesson_quiz.models import QuestionResult, QuizDefinition, SummaryContext

NOT_ANSWERED = "Not answered"
NO_EXPLANATION = "No explanation provided for this question."

# (minimum percentage, message), checked top-down
SCORE_MESSAGES = [
    (100, "Perfect score! Excellent work!"),
    (80, "Great job! You've mastered this topic!"),
    (60, "Good effort! Keep learning!"),
    (40, "Nice try! Review the explanations to improve!"),
    (0, "Keep practicing! Review the material and try again!"),
]


def grade(quiz: QuizDefinition, answers: Mapping[int, int]) -> int:
    """Count questions whose selected option is flagged correct.

    A missing or out-of-range selection counts as incorrect, so the result
    is always in ``[0, question_count]``.
    """
    score = 0
    for i, q in enumerate(quiz.questions):
        selected = answers.get(i)
        if selected is not None and 0 <= selected < len(q.options) and q.options[selected].correct:
            score += 1
    return score


def build_summary_context(
    quiz: QuizDefinition,
    answers: Mapping[int, int],
    score: int | None = None,
) -> SummaryContext:
    results = []
    for i, q in enumerate(quiz.questions):
        selected = answers.get(i)
        chosen = q.options[selected] if selected is not None and 0 <= selected < len(q.options) else None
        correct = q.correct_option()
        results.append(QuestionResult(
            question_number=i + 1,
            question=q.question,
            user_answer=(chosen.text or NOT_ANSWERED) if chosen else NOT_ANSWERED,
            correct_answer=correct.text if correct else "",
            is_correct=bool(chosen and chosen.correct),
            explanation=correct.explanation if correct else "",
        ))
    return SummaryContext(
        total_questions=quiz.question_count,
        score=score,
        questions=results,
        title=quiz.title,
        difficulty=quiz.difficulty,
        topic=quiz.topic,
    )


def score_message(score: int, total: int) -> str:
    percentage = score / total * 100 if total else 100.0
    for threshold, message in SCORE_MESSAGES:
        if percentage >= threshold:
            return message
    return SCORE_MESSAGES[-1][1]


def submit_label(answered: int, total: int) -> str:
    if answered < total:
        return f"Answer all questions ({answered}/{total})"
    return "Submit Assessment"


def quiz_topic(quiz: QuizDefinition) -> str:
    """Best available topic: explicit topic, then title, then the first prompt."""
    if quiz.topic:
        return quiz.topic
    if quiz.title:
        return quiz.title
    if quiz.questions:
        return quiz.questions[0].question
    return ""
