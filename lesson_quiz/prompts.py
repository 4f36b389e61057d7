"""Text rendering of quiz results for a follow-up tutoring conversation."""
from __future__ import annotations

from lesson_quiz.models import SummaryContext

TUTOR_SYSTEM_PROMPT = """\
You are a patient tutor reviewing an assessment the student just completed.

{results}

Be concise and educational. Start with the questions the student got wrong: \
explain why their choice was incorrect and what the correct answer shows. \
Use concrete examples. Skip praise for the questions they got right unless asked.
"""


def format_quiz_results(summary: SummaryContext) -> str:
    lines = []
    if summary.title:
        lines.append(f"Assessment: {summary.title}")
    if summary.topic:
        lines.append(f"Topic: {summary.topic}")
    if summary.difficulty:
        lines.append(f"Difficulty: {summary.difficulty}")
    if summary.score is not None:
        lines.append(f"Score: {summary.score} out of {summary.total_questions}")
    else:
        lines.append(f"Not yet graded ({summary.total_questions} questions)")

    for r in summary.questions:
        lines.append("")
        lines.append(f"{r.question_number}. {r.question}")
        mark = "correct" if r.is_correct else "wrong"
        lines.append(f"   Student answer: {r.user_answer} ({mark})")
        if not r.is_correct and r.correct_answer:
            lines.append(f"   Correct answer: {r.correct_answer}")
        if r.explanation:
            lines.append(f"   Explanation: {r.explanation}")
    return "\n".join(lines)


def build_tutor_system_prompt(summary: SummaryContext) -> str:
    return TUTOR_SYSTEM_PROMPT.format(results=format_quiz_results(summary))
