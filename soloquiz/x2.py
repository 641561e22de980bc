from __future__ import annotations

from soloquiz.api.models import Stage, X2State


def can_arm(*, x2: X2State, stage: Stage, index: int, last_index: int) -> bool:
    """The token is armed from a category stage, once per game, never on the final question."""

    return x2.available and stage == Stage.category and index != last_index


def arm(*, x2: X2State, stage: Stage, index: int, last_index: int) -> X2State:
    if not can_arm(x2=x2, stage=stage, index=index, last_index=last_index):
        return x2
    return X2State(available=False, armed_index=index)


def is_active_for(*, x2: X2State, index: int) -> bool:
    return x2.armed_index is not None and x2.armed_index == index
