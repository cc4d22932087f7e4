"""Route modules exposed by the API package."""

from . import assignments, escalations, outcomes, ping, tickets

__all__ = ["assignments", "escalations", "outcomes", "ping", "tickets"]
