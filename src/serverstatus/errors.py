"""Exceptions raised while sampling kernel data sources."""


class StatusError(Exception):
    """Base class for all serverstatus errors."""


class SourceUnavailable(StatusError):
    """A data source could not be opened or read."""


class MalformedSource(StatusError):
    """A data source does not have the expected structure."""


class MissingField(MalformedSource):
    """A required whitespace-delimited field is absent."""


class MalformedInteger(MalformedSource):
    """A required field is present but is not a non-negative integer."""


class DomainDisabled(StatusError, LookupError):
    """A metric was requested from a domain that is not enabled."""
