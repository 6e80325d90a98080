"""Pydantic models mirroring the JMAP response shapes the linter reads.

Only the properties the pipeline requests are modelled. Validation happens
once, at the response boundary, in ``email_linter.executors.batched_query``.
"""

from pydantic import BaseModel, Field, field_validator

MAIL_CAPABILITY = "urn:ietf:params:jmap:mail"


class JmapSession(BaseModel):
    """The session resource returned by the JMAP session URL."""

    apiUrl: str
    primaryAccounts: dict[str, str] = Field(default_factory=dict)

    @property
    def mail_account_id(self) -> str | None:
        return self.primaryAccounts.get(MAIL_CAPABILITY)


class MethodResponse(BaseModel):
    """One ``[name, arguments, callId]`` triple from ``methodResponses``."""

    name: str
    arguments: dict
    call_id: str

    @property
    def is_error(self) -> bool:
        return self.name == "error"


class JmapResponse(BaseModel):
    """Top-level response envelope for a JMAP API request."""

    methodResponses: list[tuple[str, dict, str]]

    def method_responses(self) -> list[MethodResponse]:
        return [
            MethodResponse(name=name, arguments=args, call_id=call_id)
            for name, args, call_id in self.methodResponses
        ]


class JmapMethodError(BaseModel):
    """Arguments of an ``error`` method response."""

    type: str
    description: str = ""


class QueryArguments(BaseModel):
    """Arguments of a ``<Type>/query`` response."""

    ids: list[str] = Field(default_factory=list)
    total: int | None = None
    position: int = 0


class GetArguments(BaseModel):
    """Arguments of a ``<Type>/get`` response."""

    records: list[dict] = Field(default_factory=list, alias="list")
    notFound: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class EmailAddress(BaseModel):
    """A single entry of a to/cc/bcc/from header."""

    name: str | None = None
    email: str = ""

    @field_validator("email", mode="before")
    @classmethod
    def _null_email(cls, value):
        # Group syntax entries ("Undisclosed recipients:;") have no address.
        return "" if value is None else value


class EmailRecord(BaseModel):
    """Minimal projection of an email: recipients and senders only."""

    id: str = ""
    to: list[EmailAddress] = Field(default_factory=list)
    cc: list[EmailAddress] = Field(default_factory=list)
    bcc: list[EmailAddress] = Field(default_factory=list)
    sender: list[EmailAddress] = Field(default_factory=list, alias="from")

    model_config = {"populate_by_name": True}

    @field_validator("to", "cc", "bcc", "sender", mode="before")
    @classmethod
    def _null_is_empty(cls, value):
        # JMAP sends null for headers that are absent from the message.
        return [] if value is None else value

    def recipients(self, field: str) -> list[EmailAddress]:
        """Return the recipient list for ``to``, ``cc`` or ``bcc``."""
        if field not in RECIPIENT_FIELDS:
            raise ValueError(f"Not a recipient field: {field}")
        return getattr(self, field)


RECIPIENT_FIELDS = ("to", "cc", "bcc")


class Mailbox(BaseModel):
    """A mailbox (folder) from ``Mailbox/get``."""

    id: str
    name: str = ""
    role: str | None = None
