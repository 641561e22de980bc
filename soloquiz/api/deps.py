from __future__ import annotations

from collections.abc import Generator

import redis

from soloquiz.infra.redis_client import create_redis
from soloquiz.questions.registry import QuestionSet
from soloquiz.questions.singleton import get_questions


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_question_set() -> QuestionSet:
    return get_questions()
