from __future__ import annotations

from collections.abc import Mapping

from soloquiz.api.models import Outcome, Question, ResultRow


def correct_flag(outcome: Outcome) -> bool | None:
    if outcome == Outcome.correct:
        return True
    if outcome == Outcome.wrong:
        return False
    return None


def build_row(
    *,
    index: int,
    question: Question,
    is_final: bool,
    outcome: Outcome,
    x2_applied: bool,
    delta: int,
    running_total: int,
    streak_bonus_points: int = 0,
) -> ResultRow:
    return ResultRow(
        index=index,
        category=question.category,
        points=question.points,
        is_final=is_final,
        correct=correct_flag(outcome),
        x2_applied=x2_applied,
        delta=delta,
        running_total=running_total,
        streak_bonus_points=streak_bonus_points,
    )


def record_row(ledger: Mapping[int, ResultRow], row: ResultRow) -> dict[int, ResultRow]:
    """Return a new ledger with `row` stored under its question index (last write wins)."""

    rebuilt = dict(ledger)
    rebuilt[row.index] = row
    return rebuilt


def ordered_rows(ledger: Mapping[int, ResultRow]) -> list[ResultRow]:
    return [ledger[i] for i in sorted(ledger)]
