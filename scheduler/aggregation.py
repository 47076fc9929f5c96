"""Ranking of timeframes from raw availability votes.

Summaries are rebuilt from the raw responses on every call and never cached,
so a vote written a moment ago shows up on the next read.
"""

from collections import defaultdict
from collections.abc import Iterable

from scheduler.models import (
    Availability,
    Respondent,
    RespondentAvailability,
    Response,
    Timeframe,
    TimeframeSummary,
)

AVAILABILITY_WEIGHTS: dict[Availability, int] = {
    Availability.PREFERRED: 3,
    Availability.COULD_MAKE: 1,
    Availability.NOT_AVAILABLE: -1,
}


def score_counts(preferred: int, could_make: int, not_available: int) -> int:
    return (
        preferred * AVAILABILITY_WEIGHTS[Availability.PREFERRED]
        + could_make * AVAILABILITY_WEIGHTS[Availability.COULD_MAKE]
        + not_available * AVAILABILITY_WEIGHTS[Availability.NOT_AVAILABLE]
    )


def summarize_timeframe(
    timeframe: Timeframe,
    responses: Iterable[Response],
    names: dict[str, str] | None = None,
) -> TimeframeSummary:
    """Tally the votes cast on a single timeframe.

    ``responses`` must already be limited to this timeframe; their order is
    kept in the summary's respondent list. ``names`` maps respondent ids to
    display names and is only consulted when a response carries a blank name.
    """
    names = names or {}
    counts: dict[Availability, int] = dict.fromkeys(Availability, 0)
    voters: list[RespondentAvailability] = []
    for response in responses:
        counts[response.availability] += 1
        voters.append(
            RespondentAvailability(
                respondent_id=response.respondent_id,
                respondent_name=response.respondent_name or names.get(response.respondent_id, ""),
                availability=response.availability,
            )
        )

    preferred = counts[Availability.PREFERRED]
    could_make = counts[Availability.COULD_MAKE]
    not_available = counts[Availability.NOT_AVAILABLE]
    return TimeframeSummary(
        timeframe_id=timeframe.timeframe_id,
        label=timeframe.label,
        start_date=timeframe.start_date,
        end_date=timeframe.end_date,
        preferred_count=preferred,
        could_make_count=could_make,
        not_available_count=not_available,
        score=score_counts(preferred, could_make, not_available),
        respondents=voters,
    )


def summarize(
    timeframes: Iterable[Timeframe],
    responses: Iterable[Response],
    respondents: Iterable[Respondent] = (),
) -> list[TimeframeSummary]:
    """Rank every timeframe by its weighted score.

    Responses pointing at a timeframe that is not in ``timeframes`` are
    ignored. Respondents who did not vote on a timeframe are not counted
    against it.

    Ordering is score descending, then timeframe start ascending, then the
    position the timeframe had in ``timeframes``.
    """
    by_timeframe: dict[str, list[Response]] = defaultdict(list)
    for response in responses:
        by_timeframe[response.timeframe_id].append(response)

    names = {r.respondent_id: r.name for r in respondents}
    summaries = [
        (position, summarize_timeframe(tf, by_timeframe.get(tf.timeframe_id, ()), names))
        for position, tf in enumerate(timeframes)
    ]
    summaries.sort(key=lambda item: (-item[1].score, item[1].start_date, item[0]))
    return [summary for _, summary in summaries]


def count_respondents(
    respondents: Iterable[Respondent],
    responses: Iterable[Response] = (),
) -> int:
    """Number of distinct people who answered, not the sum of per-timeframe votes."""
    ids = {r.respondent_id for r in respondents}
    ids.update(r.respondent_id for r in responses)
    return len(ids)
