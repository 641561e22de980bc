from __future__ import annotations

from pathlib import Path

from soloquiz.questions.registry import QuestionSet, load_question_set


_QUESTIONS: QuestionSet | None = None


def init_questions(*, project_root: Path) -> QuestionSet:
    """Load the question set once and cache it.

    Safe to call multiple times; subsequent calls return the already loaded instance.
    """

    global _QUESTIONS
    if _QUESTIONS is None:
        _QUESTIONS = load_question_set(root=project_root)
    return _QUESTIONS


def reset_questions_for_tests() -> None:
    global _QUESTIONS
    _QUESTIONS = None


def get_questions() -> QuestionSet:
    if _QUESTIONS is None:
        raise RuntimeError("Questions not initialized. Call init_questions() at startup.")
    return _QUESTIONS
