from __future__ import annotations


class HomeLifeError(Exception):
    """Base class for all HomeLife input failures."""


class UnknownSystemTypeError(HomeLifeError, ValueError):
    """Raised when a system type has no profile row."""


class MissingPermitDateError(HomeLifeError, ValueError):
    """Raised when a permit matches a system but carries no usable date field."""


class VagueInstallStatementError(HomeLifeError, ValueError):
    """Raised when an owner/inspection statement has no specific install year."""


class MissingInstallYearError(HomeLifeError, ValueError):
    """Raised when neither an install year nor a construction year is available."""


class UnknownAdvisorStateError(HomeLifeError, ValueError):
    """Raised when an advisor state is not one of the known states."""


class InputFetchError(HomeLifeError, RuntimeError):
    """Raised when any input read fails; evaluation never proceeds on partial inputs."""
