"""Storage contract shared by the Postgres and Redis backends."""

import abc

from scheduler.models import Event, EventStatus, Respondent, Response, Timeframe


class EventStore(abc.ABC):
    """Persistence for events and everything recorded under them.

    Workflows receive an instance explicitly; nothing in the scheduling core
    holds a connection of its own.
    """

    backend: str = "abstract"

    @abc.abstractmethod
    async def ping(self) -> bool:
        """Round-trip to the backend; raises if it is unreachable."""

    @abc.abstractmethod
    async def share_code_exists(self, share_code: str) -> bool: ...

    @abc.abstractmethod
    async def create_event(self, event: Event, timeframes: list[Timeframe]) -> None:
        """Persist an event, its share code and its timeframes together.

        Raises:
            ConflictError: If the share code was claimed concurrently.
        """

    @abc.abstractmethod
    async def get_event(self, event_id: str) -> Event | None: ...

    @abc.abstractmethod
    async def get_event_id_by_share_code(self, share_code: str) -> str | None: ...

    @abc.abstractmethod
    async def update_event_status(self, event_id: str, status: EventStatus) -> Event | None:
        """Change an event's status, returning the updated event or None if missing."""

    @abc.abstractmethod
    async def list_timeframes(self, event_id: str) -> list[Timeframe]:
        """All timeframes of an event in chronological order."""

    @abc.abstractmethod
    async def get_respondent(self, event_id: str, respondent_id: str) -> Respondent | None: ...

    @abc.abstractmethod
    async def list_respondents(self, event_id: str) -> list[Respondent]: ...

    @abc.abstractmethod
    async def list_responses(
        self, event_id: str, respondent_id: str | None = None
    ) -> list[Response]:
        """Live responses of an event, optionally limited to one respondent."""

    @abc.abstractmethod
    async def save_responses(
        self,
        event_id: str,
        responses: list[Response],
        respondent: Respondent | None = None,
    ) -> None:
        """Write a submission in one go.

        ``respondent`` is inserted when given and left alone if it already
        exists. Each response replaces any earlier one for the same
        (respondent, timeframe) pair.
        """

    async def close(self) -> None:
        """Release backend resources owned by the store."""
        return

    def stats(self) -> dict[str, object] | None:
        """Backend figures reported by ``/health``, if the backend has any."""
        return None
