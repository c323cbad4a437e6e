"""Exception types raised while fetching and evaluating Graphite data."""


class CheckGraphiteError(Exception):
    """Base class for all check errors."""


class MalformedRecord(CheckGraphiteError):
    """A single CSV record could not be turned into a data point."""


class StreamError(CheckGraphiteError):
    """The CSV stream failed before reaching end of input."""


class NetworkError(CheckGraphiteError):
    """The HTTP request could not be built or completed."""


class CheckTimeout(CheckGraphiteError):
    """The fetch did not finish within the configured timeout."""


class ConfigError(CheckGraphiteError):
    """Invalid plugin configuration."""
