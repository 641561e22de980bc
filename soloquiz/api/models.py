from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


PLAYER_ID = "p1"
MAX_WAGER = 3


class Stage(StrEnum):
    category = "category"
    question = "question"
    answer = "answer"
    # Reserved; the last question's betting flow runs through category/answer.
    finale = "finale"
    results = "results"


class Outcome(StrEnum):
    correct = "correct"
    wrong = "wrong"
    no_answer = "no_answer"


class AnsweredTag(StrEnum):
    correct = "correct"
    wrong = "wrong"
    final_correct = "final-correct"
    final_wrong = "final-wrong"


class MediaKind(StrEnum):
    image = "image"
    audio = "audio"
    video = "video"


class Media(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    kind: MediaKind
    src: str
    alt: str | None = None
    poster: str | None = None
    type: str | None = None


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    order: int = Field(0, validation_alias=AliasChoices("order", "id"))
    category: str
    points: int = Field(1, ge=1)
    prompt: str
    answer: str
    fact: str | None = None
    media: Media | None = None

    @field_validator("points", mode="before")
    @classmethod
    def _missing_points_count_as_one(cls, v: object) -> object:
        # Question data written by hand often leaves points empty or 0.
        if v is None or v == 0:
            return 1
        return v


class PlayerState(BaseModel):
    player_id: str = PLAYER_ID
    name: str = "Player"
    score: int = 0
    streak: int = Field(0, ge=0)
    max_streak: int = Field(0, ge=0)


class X2State(BaseModel):
    available: bool = True
    armed_index: int | None = None


class WagerState(BaseModel):
    amount: int = Field(0, ge=0, le=MAX_WAGER)


class FinalResolution(BaseModel):
    resolved: bool = False


class ResultRow(BaseModel):
    index: int
    category: str
    points: int
    is_final: bool = False

    # True/False; None = explicit no answer.
    correct: bool | None = None
    x2_applied: bool = False

    delta: int
    running_total: int

    # Bonus points from the streak (0 or 1), not the raw streak count.
    streak_bonus_points: int = 0


class GameState(BaseModel):
    index: int = 0
    stage: Stage = Stage.category
    player: PlayerState = Field(default_factory=PlayerState)
    x2: X2State = Field(default_factory=X2State)
    wager: WagerState = Field(default_factory=WagerState)
    final_resolution: FinalResolution = Field(default_factory=FinalResolution)

    # Question index -> outcome tag. Gates forward navigation from the answer stage.
    answered: dict[int, AnsweredTag] = Field(default_factory=dict)

    # player_id of whoever scored the previous outcome; drives the streak.
    last_outcome_side: str | None = None

    ledger: dict[int, ResultRow] = Field(default_factory=dict)


class ActionGate(BaseModel):
    enabled: bool
    reason: str | None = None


class AvailableActions(BaseModel):
    next: ActionGate
    previous: ActionGate
    arm_x2: ActionGate
    set_wager: ActionGate
    award_outcome: ActionGate
    resolve_final: ActionGate


class GameView(BaseModel):
    session_id: str | None = None
    index: int
    total_questions: int
    is_final: bool
    stage: Stage
    question: Question | None = None

    player: PlayerState
    x2: X2State
    x2_active: bool
    wager: WagerState
    final_resolution: FinalResolution
    answered: dict[int, AnsweredTag]
    results: list[ResultRow]

    actions: AvailableActions


class ActionResponse(BaseModel):
    applied: bool
    reason: str | None = None
    view: GameView


class WagerRequest(BaseModel):
    # Out-of-range bets are clamped to 0..3, not rejected.
    amount: int


class OutcomeRequest(BaseModel):
    outcome: Outcome
    advance: bool = True


class RenameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=40)
