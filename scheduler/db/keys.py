"""Composite identifiers for records stored under an event.

Every record belongs to exactly one event. Within that event it is addressed
by its kind plus the ids specific to that kind:

    event       ()
    timeframe   (timeframe_id,)
    respondent  (respondent_id,)
    response    (respondent_id, timeframe_id)

A key with fewer parts than its kind normally carries acts as a prefix:
``RecordKey.response(event_id, respondent_id)`` selects every response of one
respondent. Keys order by (event, kind, parts), so all records of one kind
under one event are contiguous.
"""

import re
from dataclasses import dataclass
from enum import Enum

SEPARATOR = "|"
_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class RecordKind(str, Enum):
    EVENT = "event"
    TIMEFRAME = "timeframe"
    RESPONDENT = "respondent"
    RESPONSE = "response"


@dataclass(frozen=True, order=True)
class RecordKey:
    event_id: str
    kind: RecordKind
    parts: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for part in self.parts:
            if SEPARATOR in part:
                raise ValueError(f"record id may not contain {SEPARATOR!r}: {part!r}")

    @classmethod
    def event(cls, event_id: str) -> "RecordKey":
        return cls(event_id, RecordKind.EVENT)

    @classmethod
    def timeframe(cls, event_id: str, timeframe_id: str | None = None) -> "RecordKey":
        return cls(event_id, RecordKind.TIMEFRAME, _parts(timeframe_id))

    @classmethod
    def respondent(cls, event_id: str, respondent_id: str | None = None) -> "RecordKey":
        return cls(event_id, RecordKind.RESPONDENT, _parts(respondent_id))

    @classmethod
    def response(
        cls,
        event_id: str,
        respondent_id: str | None = None,
        timeframe_id: str | None = None,
    ) -> "RecordKey":
        if respondent_id is None and timeframe_id is not None:
            raise ValueError("a response prefix needs the respondent id before the timeframe id")
        return cls(event_id, RecordKind.RESPONSE, _parts(respondent_id, timeframe_id))

    @classmethod
    def from_field(cls, event_id: str, field: str) -> "RecordKey":
        kind, *parts = field.split(SEPARATOR)
        return cls(event_id, RecordKind(kind), tuple(parts))

    @property
    def field(self) -> str:
        """Encoding of the key inside its event's partition."""
        return SEPARATOR.join((self.kind.value, *self.parts))

    def has_prefix(self, prefix: "RecordKey") -> bool:
        return (
            self.event_id == prefix.event_id
            and self.kind == prefix.kind
            and self.parts[: len(prefix.parts)] == prefix.parts
        )

    def match_pattern(self) -> str:
        """Glob matching this key's field and every field it prefixes."""
        escaped = _GLOB_SPECIAL.sub(r"\\\1", self.field)
        if self.kind is RecordKind.EVENT:
            return escaped
        return escaped + SEPARATOR + "*"


def _parts(*ids: str | None) -> tuple[str, ...]:
    return tuple(i for i in ids if i is not None)
