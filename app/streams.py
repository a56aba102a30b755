from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Mapping, Sequence, cast

import redis

from app.core.events import GameEvent


@dataclass(frozen=True, slots=True)
class SessionStream:
    session_id: str

    @property
    def key(self) -> str:
        return f"memory:session:{self.session_id}:events"


def event_fields(event: GameEvent) -> dict[str, str]:
    return {
        "type": event.type,
        "round_id": str(event.round_id),
        "ts": event.ts.isoformat(),
        "payload": json.dumps(event.payload, ensure_ascii=False),
    }


def publish_to_stream(*, r: redis.Redis, stream: SessionStream, fields: Mapping[str, str]) -> str:
    """Append an entry to a session's event stream."""

    # redis-py stubs expect field/value unions; in our app we only use string fields/values.
    stream_id = r.xadd(stream.key, {str(k): str(v) for k, v in fields.items()})
    return cast(str, stream_id)


def publish_events(*, r: redis.Redis, stream: SessionStream, events: Sequence[GameEvent]) -> list[str]:
    return [publish_to_stream(r=r, stream=stream, fields=event_fields(e)) for e in events]


def read_stream(
    *,
    r: redis.Redis,
    stream: SessionStream,
    start: str = "-",
    end: str = "+",
    count: int | None = None,
) -> list[tuple[str, dict[str, str]]]:
    entries = r.xrange(stream.key, min=start, max=end, count=count)
    return cast(list[tuple[str, dict[str, str]]], entries)
