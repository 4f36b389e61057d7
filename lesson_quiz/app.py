"""FastAPI application: HTTP surface over in-memory quiz sessions."""
from __future__ import annotations

import logging
import uuid

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from lesson_quiz.config import Settings, load_settings, save_settings
from lesson_quiz.models import DIFFICULTIES, QuizFormatError, quiz_from_dict
from lesson_quiz.prompts import build_tutor_system_prompt
from lesson_quiz.providers.base import ScoreSubmitter
from lesson_quiz.providers.notifier_log import LogBonusNotifier
from lesson_quiz.session import IncompleteAnswers, InvalidIndex, QuizSession
from lesson_quiz.summary import quiz_topic

app = FastAPI(title="Lesson Quiz")

_log = logging.getLogger("lesson_quiz.api")

# Global state (initialized in startup)
_settings: Settings | None = None
_sessions: dict[str, QuizSession] = {}  # session_id -> session


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_score_submitter(viewer: str | None) -> ScoreSubmitter:
    s = get_settings()
    if s.score_webhook_url:
        from lesson_quiz.providers.score_webhook import WebhookScoreSubmitter
        return WebhookScoreSubmitter(s.score_webhook_url, timeout=s.score_webhook_timeout, viewer=viewer)
    from lesson_quiz.providers.score_log import LogScoreSubmitter
    return LogScoreSubmitter(viewer=viewer)


@app.on_event("startup")
async def startup():
    global _settings
    if _settings is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()


@app.on_event("shutdown")
async def shutdown():
    _sessions.clear()


async def _json_body(request: Request) -> dict:
    if not await request.body():
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    return body


def _get_session(session_id: str) -> QuizSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Session not found")
    return session


def _parse_quiz(raw):
    try:
        return quiz_from_dict(raw)
    except QuizFormatError as e:
        raise HTTPException(400, f"Invalid quiz: {e}")


def _int_field(body: dict, key: str) -> int:
    value = body.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise HTTPException(400, f"{key} must be an integer")
    return value


def _session_view(session_id: str, session: QuizSession) -> dict:
    quiz = session.quiz
    return {
        "session_id": session_id,
        "state": session.state.value,
        "title": quiz.title or "Your Assessment",
        "description": quiz.description,
        "difficulty": quiz.difficulty,
        "selected_difficulty": session.selected_difficulty,
        "topic": quiz_topic(quiz),
        "viewer": session.viewer,
        "author": session.author,
        "is_external": session.is_external,
        "answers": {str(k): v for k, v in sorted(session.answers.items())},
        "answered": session.answered_count(),
        "total_questions": session.question_count,
        "is_complete": session.is_complete(),
        "submit_label": session.submit_label(),
        "score": session.score,
        "score_message": session.score_message(),
        "bonus_awarded": session.bonus_awarded,
        "score_recorded": session.score_recorded,
        "questions": [
            {
                "question": q.question,
                "options": [o.text for o in q.options],
                "feedback": _feedback_view(session, i),
            }
            for i, q in enumerate(quiz.questions)
        ],
    }


def _feedback_view(session: QuizSession, index: int) -> dict:
    fb = session.feedback(index)
    view = {
        "selected_index": fb.selected_index,
        "explanation_visible": fb.explanation_visible,
    }
    # Correctness is only disclosed once graded
    if session.graded:
        view.update({
            "correct_index": fb.correct_index,
            "is_correct": fb.is_correct,
            "show_correct_answer": fb.show_correct_answer,
            "correct_answer": fb.correct_answer,
        })
        if fb.explanation_visible:
            view["explanation"] = fb.explanation
    return view


async def _record(session: QuizSession) -> bool:
    submitter = _get_score_submitter(session.viewer)
    return await session.record_score_async(submitter.submit)


# ── API: Sessions ─────────────────────────────────────────────────────────

@app.post("/api/sessions")
async def api_session_create(request: Request):
    body = await _json_body(request)
    quiz = _parse_quiz(body.get("quiz"))
    viewer = body.get("viewer") or None
    author = body.get("author") or quiz.creator_name or None

    session = QuizSession(
        quiz,
        viewer=viewer,
        author=author,
        bonus_notifier=LogBonusNotifier(),
        bonus_points=get_settings().bonus_points,
    )
    session_id = uuid.uuid4().hex
    _sessions[session_id] = session
    _log.info("Session %s created (%d questions, external=%s)",
              session_id, session.question_count, session.is_external)
    return _session_view(session_id, session)


@app.get("/api/sessions/{session_id}")
async def api_session_get(session_id: str):
    return _session_view(session_id, _get_session(session_id))


@app.delete("/api/sessions/{session_id}")
async def api_session_delete(session_id: str):
    _get_session(session_id)
    del _sessions[session_id]
    return {"session_id": session_id, "deleted": True}


@app.post("/api/sessions/{session_id}/start")
async def api_session_start(session_id: str, request: Request):
    session = _get_session(session_id)
    body = await _json_body(request)
    difficulty = body.get("difficulty")
    if difficulty is None and session.quiz.difficulty is None:
        difficulty = get_settings().default_difficulty
        if difficulty not in DIFFICULTIES:
            _log.warning("Ignoring invalid default_difficulty %r", difficulty)
            difficulty = "medium"
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise HTTPException(400, f"difficulty must be one of {', '.join(DIFFICULTIES)}")
    session.start(difficulty)
    return _session_view(session_id, session)


@app.post("/api/sessions/{session_id}/answer")
async def api_session_answer(session_id: str, request: Request):
    session = _get_session(session_id)
    body = await _json_body(request)
    question_index = _int_field(body, "question_index")
    option_index = _int_field(body, "option_index")
    try:
        accepted = session.select_answer(question_index, option_index)
    except InvalidIndex as e:
        raise HTTPException(400, str(e))
    view = _session_view(session_id, session)
    view["accepted"] = accepted
    return view


@app.post("/api/sessions/{session_id}/submit")
async def api_session_submit(session_id: str):
    session = _get_session(session_id)
    try:
        result = session.submit()
    except IncompleteAnswers as e:
        raise HTTPException(409, f"Answer all questions ({e.answered}/{e.total})")

    bonus = None
    if result.award is not None:
        award = result.award
        bonus = {"points": award.points, "message": award.message, "description": award.description}

    s = get_settings()
    if s.auto_record_score and session.viewer:
        try:
            await _record(session)
        except Exception as e:
            _log.warning("Auto score submission failed for %s: %s", session_id, e)

    return {
        "session_id": session_id,
        "score": result.score,
        "total_questions": result.question_count,
        "score_message": session.score_message(),
        "bonus": bonus,
        "bonus_awarded": session.bonus_awarded,
        "score_recorded": session.score_recorded,
    }


@app.post("/api/sessions/{session_id}/record")
async def api_session_record(session_id: str):
    session = _get_session(session_id)
    if not session.graded:
        raise HTTPException(409, "Submit the assessment before saving the score")
    try:
        recorded = await _record(session)
    except Exception as e:
        _log.warning("Score submission failed for %s: %s", session_id, e)
        raise HTTPException(502, f"Score submission failed: {e}")
    return {"recorded": recorded, "score_recorded": session.score_recorded}


@app.post("/api/sessions/{session_id}/explanations/{question_index}")
async def api_session_toggle_explanation(session_id: str, question_index: int):
    session = _get_session(session_id)
    if not 0 <= question_index < session.question_count:
        raise HTTPException(400, f"question index {question_index} out of range")
    visible = session.toggle_explanation(question_index)
    return {"question_index": question_index, "revealed": visible,
            "feedback": _feedback_view(session, question_index)}


@app.post("/api/sessions/{session_id}/reset")
async def api_session_reset(session_id: str):
    session = _get_session(session_id)
    session.reset()
    return _session_view(session_id, session)


@app.put("/api/sessions/{session_id}/quiz")
async def api_session_replace_quiz(session_id: str, request: Request):
    session = _get_session(session_id)
    body = await _json_body(request)
    quiz = _parse_quiz(body.get("quiz"))
    session.replace_quiz(quiz, author=body.get("author") or None)
    return _session_view(session_id, session)


@app.get("/api/sessions/{session_id}/summary")
async def api_session_summary(session_id: str):
    session = _get_session(session_id)
    summary = session.build_summary_context()
    return {
        "summary": summary.to_dict(),
        "tutor_context": build_tutor_system_prompt(summary),
    }


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await _json_body(request)
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    if "default_difficulty" in body and body["default_difficulty"] not in DIFFICULTIES:
        raise HTTPException(400, f"default_difficulty must be one of {', '.join(DIFFICULTIES)}")
    for k, v in body.items():
        if k in known:
            setattr(s, k, v)
    save_settings(s)
    return s.to_dict()
