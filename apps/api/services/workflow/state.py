from __future__ import annotations

from enum import Enum
from typing import Mapping


class TicketStatus(str, Enum):
    """Canonical states of the ticket lifecycle."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    RE_RAISED = "re_raised"
    CLOSED = "closed"


class TierStatus(str, Enum):
    """Outcome of the work done at a single tier."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class HistoryAction(str, Enum):
    """Action recorded on an audit history entry."""

    ASSIGNED = "assigned"
    UNASSIGNED = "unassigned"
    ACCEPTED = "accepted"
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    RE_RAISED = "re_raised"
    REVERTED = "reverted"


class Transition(str, Enum):
    """Forward lifecycle operations subject to the state machine."""

    ASSIGN = "assign"
    ACCEPT = "accept"
    ESCALATE = "escalate"
    RESOLVE = "resolve"
    REJECT = "reject"
    RE_RAISE = "re_raise"


_ACTIVE = frozenset({TicketStatus.PENDING, TicketStatus.IN_PROGRESS, TicketStatus.RE_RAISED})


class TicketStateMachine:
    """Validate which ticket statuses a forward transition may start from.

    Nothing but another rejection starts from `rejected`, and nothing starts
    from `closed`. A rejected ticket returns to the cycle only when its
    rejection records are deleted.
    """

    _DEFAULT_SOURCES: Mapping[Transition, frozenset[TicketStatus]] = {
        Transition.ASSIGN: _ACTIVE | {TicketStatus.RESOLVED},
        Transition.ACCEPT: frozenset({TicketStatus.PENDING, TicketStatus.RE_RAISED}),
        Transition.ESCALATE: _ACTIVE,
        Transition.RESOLVE: _ACTIVE,
        Transition.REJECT: _ACTIVE | {TicketStatus.RESOLVED, TicketStatus.REJECTED},
        Transition.RE_RAISE: frozenset({TicketStatus.RESOLVED}),
    }

    _TARGETS: Mapping[Transition, TicketStatus] = {
        Transition.ASSIGN: TicketStatus.PENDING,
        Transition.ACCEPT: TicketStatus.IN_PROGRESS,
        Transition.ESCALATE: TicketStatus.PENDING,
        Transition.RESOLVE: TicketStatus.RESOLVED,
        Transition.REJECT: TicketStatus.REJECTED,
        Transition.RE_RAISE: TicketStatus.RE_RAISED,
    }

    def __init__(self, sources: Mapping[Transition, frozenset[TicketStatus]] | None = None) -> None:
        self._sources = sources or self._DEFAULT_SOURCES

    def can_apply(self, current: TicketStatus, transition: Transition) -> bool:
        return current in self._sources.get(transition, frozenset())

    def target(self, transition: Transition) -> TicketStatus:
        return self._TARGETS[transition]
