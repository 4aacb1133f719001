# gpxtracker/errors

"""
gpxtracker.errors

Central exception hierarchy for gpxtracker.

Rationale:
  - Modules should raise specific, meaningful errors.
  - Callers can catch GpxTrackerError (broad) or specific subclasses (narrow).
"""


class GpxTrackerError(RuntimeError):
    """Base class for all gpxtracker runtime errors."""


# ---- Track data errors -------------------------

class TrackDataError(GpxTrackerError):
    """Errors related to fixes, waypoints and segments."""

class InvalidFixError(TrackDataError, ValueError):
    """A fix or waypoint carries a NaN/infinite/out-of-range value, or lacks
    coordinates where they are required (live tracking, segment append)."""


# ---- GPX / serialization errors ----------------

class GpxFormatError(GpxTrackerError):
    """Errors reading or writing GPX documents."""

class InvalidGpxError(GpxFormatError):
    """GPX file could not be parsed or did not contain expected data structures."""


# ---- Configuration / selection errors ----------

class ConfigError(GpxTrackerError):
    """A configuration file exists but cannot be used."""

class SelectionError(GpxTrackerError):
    """Interactive file selection failed."""

class FzfNotFoundError(SelectionError):
    """fzf is required but not available on PATH."""
