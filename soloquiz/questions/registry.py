from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from soloquiz.api.models import Question
from soloquiz.config import get_settings

logger = logging.getLogger(__name__)

QUESTIONS_FILE = "questions.json"

_QUESTION_LIST = TypeAdapter(list[Question])


class QuestionLoadError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class QuestionSet:
    """Ordered, immutable view over the round's questions.

    Sorted by `order`; equal orders keep their file order.
    """

    questions: tuple[Question, ...]

    @staticmethod
    def from_records(records: Iterable[Question]) -> "QuestionSet":
        return QuestionSet(questions=tuple(sorted(records, key=lambda q: q.order)))

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]

    @property
    def last_index(self) -> int:
        return len(self.questions) - 1

    def get(self, index: int) -> Question | None:
        if 0 <= index < len(self.questions):
            return self.questions[index]
        return None

    def is_final(self, index: int) -> bool:
        return bool(self.questions) and index == self.last_index


def load_questions_json(path: Path) -> QuestionSet:
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise QuestionLoadError(f"Question file not found: {path}") from e

    try:
        records = _QUESTION_LIST.validate_json(raw)
    except ValidationError as e:
        raise QuestionLoadError(f"Invalid question data in {path}: {e.error_count()} error(s)") from e

    if not records:
        raise QuestionLoadError(f"Empty question file: {path}")
    return QuestionSet.from_records(records)


def _fallback_question_set() -> QuestionSet:
    """Tiny built-in round used when no question file is available."""

    return QuestionSet.from_records(
        [
            Question(order=1, category="Warm-up", points=1, prompt="How many players does a football team field?", answer="11"),
            Question(order=2, category="Rules", points=1, prompt="How long is a regulation match, in minutes?", answer="90"),
            Question(
                order=3,
                category="History",
                points=2,
                prompt="Which country hosted the first World Cup?",
                answer="Uruguay",
                fact="The 1930 final was played in Montevideo.",
            ),
            Question(order=4, category="Stadiums", points=2, prompt="Which London stadium has an arch over it?", answer="Wembley"),
            Question(order=5, category="Final", points=1, prompt="How many points is a league win worth?", answer="3"),
        ]
    )


def load_question_set(*, root: Path) -> QuestionSet:
    settings = get_settings()
    path = settings.questions_path or (root / "questions" / QUESTIONS_FILE)

    try:
        return load_questions_json(path)
    except QuestionLoadError as e:
        if settings.strict_questions:
            raise
        logger.warning("Falling back to the built-in question set: %s", e)
        return _fallback_question_set()
