"""Schemas for the linter pipeline: settings, query envelopes and results."""

from enum import StrEnum

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from email_linter.schemas.jmap import EmailRecord

# --- Config ---


class LinterSettings(BaseModel):
    """Everything a pipeline run needs besides the API token."""

    session_url: str = "https://api.fastmail.com/jmap/session"
    domains: frozenset[str] = frozenset({"duck.com", "mozmail.com", "icloud.com"})
    limit: int = Field(default=100, ge=1)
    max_senders: int = Field(default=10, ge=0)

    @field_validator("domains", mode="before")
    @classmethod
    def _lowercase_domains(cls, value):
        if isinstance(value, str):
            return parse_domains(value)
        return frozenset(d.lower() for d in value)


def parse_domains(raw: str) -> frozenset[str]:
    """Split a space-delimited domain list into a lower-cased set."""
    return frozenset(d.lower() for d in raw.split())


# --- Query envelope ---


class QueryResult(BaseModel):
    """Records fetched by one batched query plus the store-wide match count."""

    records: list[EmailRecord] = Field(default_factory=list)
    total: int = 0

    @model_validator(mode="after")
    def _retrieved_within_total(self) -> "QueryResult":
        if len(self.records) > self.total:
            raise ValueError(
                f"retrieved {len(self.records)} records but total is {self.total}"
            )
        return self

    @property
    def retrieved(self) -> int:
        return len(self.records)

    @property
    def truncated(self) -> bool:
        return self.total > self.retrieved


# --- Results ---


class LinterOutcome(StrEnum):
    """How a pipeline run ended."""

    COMPLETED = "completed"
    NO_DISPOSABLE_FOUND = "no_disposable_found"


class ClassificationAmbiguity(BaseModel):
    """One email field that reached more than one distinct disposable address."""

    email_id: str
    field: str  # "to", "cc" or "bcc"
    addresses: list[str]


class LinterResult(BaseModel):
    """Outcome of a pipeline run, handed to the report renderers."""

    outcome: LinterOutcome
    disposable_addresses: list[str] = Field(default_factory=list)
    senders: dict[str, list[str]] = Field(default_factory=dict)
    inbox_total: int = 0
    inbox_retrieved: int = 0
    senders_total: int = 0
    senders_retrieved: int = 0
    ambiguities: list[ClassificationAmbiguity] = Field(default_factory=list)

    @computed_field
    @property
    def inbox_truncated(self) -> bool:
        return self.inbox_total > self.inbox_retrieved

    @computed_field
    @property
    def senders_truncated(self) -> bool:
        return self.senders_total > self.senders_retrieved
