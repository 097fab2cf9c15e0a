"""
Exceptions raised by the flake detector.

Probe failures (timeouts, connection errors, error statuses) are never raised:
they are measured and folded into the failure rate. Only configuration
problems abort a run, and only before any probing starts.
"""


class FlakeDetectorError(ValueError):
    """Base class for flake detector errors."""


class ConfigurationError(FlakeDetectorError):
    """Invalid run configuration detected at startup."""
