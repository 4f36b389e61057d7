"""CLI entry point for lesson-quiz.

Usage:
  python -m lesson_quiz serve [--host HOST] [--port PORT]
  python -m lesson_quiz stop
  python -m lesson_quiz restart [--host HOST] [--port PORT]
  python -m lesson_quiz status
  python -m lesson_quiz grade QUIZ.json ANSWERS   (e.g. 0,1,1)
"""
from __future__ import annotations

import json
import os
import signal
import sys
from pathlib import Path

PID_FILE = Path(__file__).resolve().parent.parent / ".server.pid"


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "stop":
        _stop()
    elif command == "restart":
        _restart(args[1:])
    elif command == "status":
        _status()
    elif command == "grade":
        sys.exit(_grade(args[1:]))
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, stop, restart, status, grade")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _read_pid() -> int | None:
    """Read PID from file, return None if stale or missing."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
        os.kill(pid, 0)
        return pid
    except (ValueError, ProcessLookupError, PermissionError):
        PID_FILE.unlink(missing_ok=True)
        return None


def _stop() -> bool:
    """Stop a running server. Returns True if a server was stopped."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return False
    try:
        os.kill(pid, signal.SIGTERM)
        print(f"Stopped server (PID {pid}).")
        PID_FILE.unlink(missing_ok=True)
        return True
    except ProcessLookupError:
        print("Server was not running (stale PID file removed).")
        PID_FILE.unlink(missing_ok=True)
        return False


def _status():
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
    else:
        print(f"Server is running (PID {pid}).")


def _restart(args: list[str]):
    import time
    _stop()
    time.sleep(1)
    _serve(args)


def _serve(args: list[str]):
    import uvicorn

    from lesson_quiz.config import load_settings

    existing = _read_pid()
    if existing is not None:
        print(f"Server already running (PID {existing}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    settings = load_settings()
    port = int(_parse_flag(args, "--port", str(settings.port)))
    host = _parse_flag(args, "--host", settings.host)
    PID_FILE.write_text(str(os.getpid()))

    print(f"Starting Lesson Quiz on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    try:
        uvicorn.run(
            "lesson_quiz.app:app",
            host=host,
            port=port,
            reload=False,
            timeout_graceful_shutdown=5,
        )
    finally:
        PID_FILE.unlink(missing_ok=True)


def _grade(args: list[str]) -> int:
    """Play a quiz file offline with the given answers and print the result."""
    from lesson_quiz.models import QuizFormatError, quiz_from_dict
    from lesson_quiz.session import IncompleteAnswers, InvalidIndex, QuizSession

    if len(args) < 2:
        print("Usage: python -m lesson_quiz grade QUIZ.json ANSWERS")
        return 1

    quiz_path = Path(args[0])
    if not quiz_path.exists():
        print(f"Quiz file not found: {quiz_path}")
        return 1
    try:
        quiz = quiz_from_dict(json.loads(quiz_path.read_text()))
    except (json.JSONDecodeError, QuizFormatError) as e:
        print(f"Invalid quiz file: {e}")
        return 1

    try:
        answers = [int(a) for a in args[1].split(",") if a.strip()]
    except ValueError:
        print(f"ANSWERS must be comma-separated option indices (got {args[1]!r})")
        return 1

    session = QuizSession(quiz)
    try:
        for q_idx, o_idx in enumerate(answers):
            session.select_answer(q_idx, o_idx)
        result = session.submit()
    except (InvalidIndex, IncompleteAnswers) as e:
        print(f"Cannot grade: {e}")
        return 1

    print(f"Score: {result.score} out of {result.question_count}")
    print(session.score_message())
    print(json.dumps(session.build_summary_context().to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    main()
