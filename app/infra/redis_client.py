from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    # MEMORY_BOMB_REDIS_URL takes precedence over the generic REDIS_URL.
    return os.environ.get("MEMORY_BOMB_REDIS_URL") or os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def create_redis() -> redis.Redis:
    # decode_responses=True => str entries; stream payloads carry emoji.
    return redis.Redis.from_url(get_redis_url(), decode_responses=True)
