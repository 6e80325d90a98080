"""Pipeline handler for a linter run.

Flow:
  resolve mailboxes -> fetch inbox recipients -> classify
  -> fetch non-spam mail to disposable addresses -> aggregate senders

The handler returns a typed ``LinterResult``; rendering it is up to the caller.
"""

import logging
from collections.abc import Callable

from email_linter.errors import MailboxResolutionError
from email_linter.executors.address_classifier import classify_recipients
from email_linter.executors.batched_query import query_emails, query_mailboxes
from email_linter.executors.sender_aggregator import aggregate_senders
from email_linter.integrations.jmap import JmapClient
from email_linter.schemas.jmap import RECIPIENT_FIELDS, EmailRecord, Mailbox
from email_linter.schemas.linter import (
    ClassificationAmbiguity,
    LinterOutcome,
    LinterResult,
    LinterSettings,
    QueryResult,
)

logger = logging.getLogger(__name__)

INBOX_ROLE = "inbox"
SPAM_ROLE = "junk"
SPAM_NAMES = ("spam", "junk")

MAILBOX_FILTER = {
    "operator": "OR",
    "conditions": [
        {"role": INBOX_ROLE},
        {"role": SPAM_ROLE},
        {"name": "inbox"},
        {"name": "spam"},
        {"name": "junk"},
    ],
}


def pick_mailboxes(mailboxes: list[Mailbox]) -> tuple[str, str]:
    """Pick the inbox and spam mailbox ids, matching role first, then name."""

    def _find(role: str, names: tuple[str, ...]) -> Mailbox | None:
        for mailbox in mailboxes:
            if (mailbox.role or "").lower() == role:
                return mailbox
        for mailbox in mailboxes:
            if mailbox.name.lower() in names:
                return mailbox
        return None

    inbox = _find(INBOX_ROLE, (INBOX_ROLE,))
    spam = _find(SPAM_ROLE, SPAM_NAMES)
    if inbox is None or spam is None or inbox.id == spam.id:
        found = ", ".join(f"{m.name!r} (role={m.role})" for m in mailboxes) or "none"
        raise MailboxResolutionError(
            f"Could not identify both the inbox and the spam mailbox; found: {found}"
        )
    return inbox.id, spam.id


async def resolve_mailboxes(client: JmapClient, account_id: str) -> tuple[str, str]:
    """Return ``(inbox_id, spam_id)`` for the account."""
    mailboxes = await query_mailboxes(
        client,
        account_id=account_id,
        filter=MAILBOX_FILTER,
        properties=["id", "role", "name"],
    )
    inbox_id, spam_id = pick_mailboxes(mailboxes)
    logger.debug("Inbox ID: %s, spam mailbox ID: %s", inbox_id, spam_id)
    return inbox_id, spam_id


def classify_records(
    records: list[EmailRecord],
    domains: frozenset[str],
) -> tuple[list[str], list[ClassificationAmbiguity]]:
    """Classify every recipient field of every record.

    Returns:
        Tuple of (sorted unique disposable addresses, ambiguities seen).
    """
    found: set[str] = set()
    ambiguities: list[ClassificationAmbiguity] = []
    for record in records:
        for field in RECIPIENT_FIELDS:
            addresses = classify_recipients(record.recipients(field), domains)
            if len(addresses) > 1:
                ambiguities.append(
                    ClassificationAmbiguity(email_id=record.id, field=field, addresses=addresses)
                )
            found.update(addresses)
    return sorted(found), ambiguities


def non_spam_filter(spam_id: str, addresses: list[str]) -> dict:
    """Mail outside the spam mailbox sent to any of the addresses via to/cc/bcc."""
    return {
        "operator": "AND",
        "conditions": [
            {"inMailboxOtherThan": [spam_id]},
            {
                "operator": "OR",
                "conditions": [
                    {field: address} for address in addresses for field in RECIPIENT_FIELDS
                ],
            },
        ],
    }


def _report_truncation(what: str, result: QueryResult, emit: Callable[[str], None]) -> None:
    if result.truncated:
        logger.warning("%s: retrieved %d of %d", what, result.retrieved, result.total)
        emit(
            f"Only the newest {result.retrieved} of {result.total} {what} were checked; "
            "results are partial."
        )


async def run_linter(
    *,
    client: JmapClient,
    settings: LinterSettings,
    on_progress: Callable[[str], None] | None = None,
) -> LinterResult:
    """Find disposable addresses in the inbox and who has been mailing them.

    Args:
        client: An open JmapClient.
        settings: Domains, page size and other run settings.
        on_progress: Optional callback for human-readable progress messages.
            Never used for machine-readable output.

    Returns:
        LinterResult. Its outcome is ``NO_DISPOSABLE_FOUND`` when the inbox
        holds no mail to a protection domain; no second query is made then.
    """

    def _emit(msg: str) -> None:
        if on_progress:
            on_progress(msg)

    account_id = await client.account_id()
    inbox_id, spam_id = await resolve_mailboxes(client, account_id)

    inbox = await query_emails(
        client,
        account_id=account_id,
        filter={"inMailbox": inbox_id},
        properties=["id", *RECIPIENT_FIELDS],
        limit=settings.limit,
    )
    _report_truncation("inbox threads", inbox, _emit)

    disposable, ambiguities = classify_records(inbox.records, settings.domains)
    for ambiguity in ambiguities:
        _emit(
            f"Email {ambiguity.email_id} reached {len(ambiguity.addresses)} disposable "
            f"addresses in '{ambiguity.field}': {', '.join(ambiguity.addresses)}"
        )

    if not disposable:
        logger.info("No disposable addresses among %d inbox thread(s)", inbox.retrieved)
        return LinterResult(
            outcome=LinterOutcome.NO_DISPOSABLE_FOUND,
            inbox_total=inbox.total,
            inbox_retrieved=inbox.retrieved,
            ambiguities=ambiguities,
        )

    logger.debug("%d disposable address(es) found: %s", len(disposable), ", ".join(disposable))

    non_spam = await query_emails(
        client,
        account_id=account_id,
        filter=non_spam_filter(spam_id, disposable),
        properties=["id", *RECIPIENT_FIELDS, "from"],
        limit=settings.limit,
    )
    _report_truncation("emails to disposable addresses", non_spam, _emit)

    senders = aggregate_senders(non_spam.records, disposable)

    return LinterResult(
        outcome=LinterOutcome.COMPLETED,
        disposable_addresses=disposable,
        senders=senders,
        inbox_total=inbox.total,
        inbox_retrieved=inbox.retrieved,
        senders_total=non_spam.total,
        senders_retrieved=non_spam.retrieved,
        ambiguities=ambiguities,
    )
