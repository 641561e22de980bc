from __future__ import annotations

from pathlib import Path

from soloquiz.questions.singleton import init_questions


def init_questions_for_app() -> None:
    # project root is two levels up from this file: soloquiz/questions/startup.py
    project_root = Path(__file__).resolve().parents[2]
    init_questions(project_root=project_root)
