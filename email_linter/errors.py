"""Exception hierarchy for the linter pipeline.

Every error here is terminal for the current run. Ambiguous classifications
are not errors; see ``ClassificationAmbiguity`` in ``email_linter.schemas.linter``.
"""


class LinterError(Exception):
    """Base class for all email-linter failures."""


class TransportError(LinterError):
    """The JMAP server could not be reached or returned an unusable body."""


class AuthenticationError(TransportError):
    """The server rejected the API token."""


class ProtocolError(LinterError):
    """The server's response was not valid JMAP."""


class StoreError(LinterError):
    """A JMAP method call returned an ``error`` response."""

    def __init__(self, type: str, description: str = "") -> None:
        self.type = type
        self.description = description
        message = f"{type}: {description}" if description else type
        super().__init__(message)


class QueryError(StoreError):
    """The ``/query`` stage of a batched request failed."""


class FetchError(StoreError):
    """The ``/get`` stage of a batched request failed."""


class RequestTooLarge(FetchError):
    """The server refused to fetch that many records in one call."""


class MailboxResolutionError(LinterError):
    """The inbox or the spam mailbox could not be identified."""


class ConfigError(LinterError):
    """A configured value could not be used."""
