"""Error taxonomy for the scoring and report lifecycle engine."""

from __future__ import annotations

from typing import Any


class CyberPulseError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(CyberPulseError):
    """A widget has an unknown scoring type or is missing configuration."""


class FetchError(CyberPulseError):
    """A metric fetcher, credential provider or aggregate feed failed."""


class PreconditionError(CyberPulseError):
    """The entity is not in the state the requested operation requires."""


class AuthorizationError(CyberPulseError):
    """The caller's role is insufficient for the requested operation."""


class NotFoundError(CyberPulseError):
    """A referenced tenant, widget, report or recipient does not exist."""


class UniqueViolation(CyberPulseError):
    """A store write collided with an existing unique key."""


class RetentionSweepError(CyberPulseError):
    """Deleting expired snapshots failed for a tenant."""


class DistributionError(CyberPulseError):
    """One or more recipient sends failed."""

    def __init__(self, message: str, outcomes: list[dict[str, Any]]) -> None:
        super().__init__(message)
        self.outcomes = outcomes
