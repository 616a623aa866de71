"""Exception taxonomy.

Only sensor failures and a missing coaching credential are meant to reach
the user. Everything raised at the external-service boundary is recovered
by the caller during a run.
"""


class RunCoachError(Exception):
    """Base class for runcoach errors."""


class SensorUnavailableError(RunCoachError):
    """Location acquisition could not be started (permission denied, no provider)."""


class InvalidTransitionError(RunCoachError):
    """A run command is not allowed in the current phase."""


class CoachConfigError(RunCoachError):
    """The coaching service is not configured (missing credential)."""


class CoachServiceError(RunCoachError):
    """The coaching service was unreachable or answered with an unusable response."""
