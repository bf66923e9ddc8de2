"""Exception hierarchy for the SPC engine.

Configuration and data-sufficiency problems are raised to the caller as soon as
they are detected. Zero observed variance is not an error: capability indices
come back as ``math.inf`` instead.
"""


class SPCError(Exception):
    """Base class for all SPC engine errors."""


class ConfigurationError(SPCError):
    """Invalid analysis configuration (spec limits, subgroup size, rule ids).

    Not a ``ValueError``: raised from pydantic validators, it reaches the
    caller as is rather than wrapped in a ``ValidationError``.
    """


class InsufficientDataError(SPCError, ValueError):
    """Not enough data to build the requested chart."""


class ConstantsRangeError(SPCError, ValueError):
    """Subgroup size outside the published constants table (2-25)."""


class InvalidDataError(SPCError, ValueError):
    """Imported rows contain values the engine cannot compute with (NaN, inf)."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
