"""Single-pass extraction of dispatch moves from an email body.

The engine walks the normalized lines once, left to right. Each line is
offered to an ordered list of LineRule objects. A rule pairs a pure matcher
(line -> match or None) with a transition that updates the ScanState and may
emit a finished Move. Terminal rules end processing of the line; the time and
vehicle rules are non-terminal and let later rules see the same line.

Flush points are weekday-date headers, section boundaries and the end of the
input. A flush backfills the pending Move from the context, cleans its
places and keeps it only if it carries a date, time, origin or destination.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from .line_classifiers import (
    is_ignorable,
    is_section_boundary,
    match_bare_date,
    match_collection,
    match_drop_off,
    match_from_to,
    match_route_phrase,
    match_weekday_date,
    parse_time,
)
from .line_normalizer import normalize_lines
from .models import Move, ScanContext
from .place_cleaner import clean_place
from .vehicle_counts import count_vehicles

logger = logging.getLogger(__name__)


@dataclass
class ScanState:
    context: ScanContext = field(default_factory=ScanContext)
    pending: Move = field(default_factory=Move)
    moves: List[Move] = field(default_factory=list)


@dataclass
class LineRule:
    name: str
    match: Callable[[str], Any]
    apply: Callable[[ScanState, Any, str], Optional[Move]]
    terminal: bool = True


@dataclass
class LineOutcome:
    """What happened to one line: the rules that fired and any emitted Move."""

    line: str
    rules: List[str] = field(default_factory=list)
    emitted: Optional[Move] = None


def flush(state: ScanState) -> Optional[Move]:
    """Finalize the pending Move and start a fresh one.

    The context is read, never cleared: a later Move without its own vehicle
    counts inherits the same running totals again.
    """
    move = state.pending
    context = state.context
    state.pending = Move()

    if not move.date:
        move.date = context.date
    if not move.time:
        move.time = context.time
    if move.counts.total() == 0 and context.counts.total() > 0:
        move.counts = context.counts.copy()
    move.origin = clean_place(move.origin)
    move.destination = clean_place(move.destination)

    if not move.has_content():
        logger.debug("Discarding empty move at flush")
        return None

    state.moves.append(move)
    logger.debug("Flushed move %s", move)
    return move


def _skip(state, match, line):
    return None


def _start_new_day(state, date, line):
    emitted = flush(state)
    state.context.date = date
    time = parse_time(line)
    if time:
        state.context.time = time
    return emitted


def _refresh_date(state, date, line):
    state.context.date = date
    return None


def _update_time(state, time, line):
    state.context.time = time
    return None


def _add_counts(state, counts, line):
    state.context.counts.add(counts)
    return None


def _assign_place(state, labeled, line):
    # an empty "To:" keeps what an earlier line set
    if labeled.text:
        setattr(state.pending, labeled.target, labeled.text)
    return None


def _assign_stop(state, labeled, line):
    if labeled.time:
        state.pending.time = labeled.time
    if labeled.text:
        setattr(state.pending, labeled.target, labeled.text)
    return None


def _assign_route(state, route, line):
    if not state.pending.origin and not state.pending.destination:
        state.pending.origin, state.pending.destination = route
    return None


def _match_counts(line):
    counts = count_vehicles(line)
    return counts if counts.total() > 0 else None


def _section_boundary(state, match, line):
    return flush(state)


DEFAULT_RULES = [
    LineRule("ignorable", lambda line: is_ignorable(line) or None, _skip),
    LineRule("weekday_date", match_weekday_date, _start_new_day),
    LineRule("bare_date", match_bare_date, _refresh_date),
    LineRule("time", parse_time, _update_time, terminal=False),
    LineRule("vehicles", _match_counts, _add_counts, terminal=False),
    LineRule("from_to", match_from_to, _assign_place),
    LineRule("collection", match_collection, _assign_stop),
    LineRule("drop_off", match_drop_off, _assign_stop),
    LineRule("route_phrase", match_route_phrase, _assign_route),
    LineRule("section_boundary", lambda line: is_section_boundary(line) or None, _section_boundary),
]


class ExtractionEngine:
    """Turns the lines of one email body into an ordered list of Moves.

    The engine itself holds no scan state; every call to ``extract`` builds
    its own ScanState, so one instance can be shared between threads or
    reused across emails.
    """

    def __init__(self, rules: Optional[List[LineRule]] = None):
        self.rules = list(rules) if rules is not None else list(DEFAULT_RULES)

    def step(self, state: ScanState, line: str) -> LineOutcome:
        """Apply the rules to one normalized line."""
        outcome = LineOutcome(line=line)
        for rule in self.rules:
            match = rule.match(line)
            if match is None:
                continue
            outcome.rules.append(rule.name)
            emitted = rule.apply(state, match, line)
            if emitted is not None:
                outcome.emitted = emitted
            if rule.terminal:
                break
        return outcome

    def trace(self, raw_lines: Iterable[str]) -> List[LineOutcome]:
        """Run a full scan and return the per-line outcomes.

        The final end-of-input flush is reported as an outcome with an empty
        line and the rule name ``end_of_input``.
        """
        state = ScanState()
        outcomes = [self.step(state, line) for line in normalize_lines(raw_lines)]
        outcomes.append(LineOutcome(line="", rules=["end_of_input"], emitted=flush(state)))
        return outcomes

    def extract(self, raw_lines: Iterable[str]) -> List[Move]:
        state = ScanState()
        for line in normalize_lines(raw_lines):
            self.step(state, line)
        flush(state)
        return state.moves


def extract_moves(raw_lines: Iterable[str]) -> List[Move]:
    """Convenience wrapper around a default ExtractionEngine."""
    return ExtractionEngine().extract(raw_lines)
