"""Sender aggregator: reverse index from disposable address to its senders."""

import logging
from collections.abc import Iterable

from email_linter.schemas.jmap import RECIPIENT_FIELDS, EmailRecord

logger = logging.getLogger(__name__)


def aggregate_senders(
    records: Iterable[EmailRecord],
    disposable_addresses: Iterable[str],
) -> dict[str, list[str]]:
    """Map each disposable address to the sorted, unique senders that reached it.

    Only addresses in ``disposable_addresses`` become keys, and only when at
    least one record addressed to them has a sender. The result does not
    depend on the order of ``records``.
    """
    known = {a.lower() for a in disposable_addresses}
    index: dict[str, list[str]] = {}

    for record in records:
        senders = [s.email.lower() for s in record.sender if s.email]
        if not senders:
            continue
        for field in RECIPIENT_FIELDS:
            for recipient in record.recipients(field):
                address = recipient.email.lower()
                if address in known:
                    index.setdefault(address, []).extend(senders)

    for address in index:
        index[address] = sorted(set(index[address]))

    logger.debug(
        "Aggregated senders for %d of %d disposable address(es)", len(index), len(known)
    )
    return dict(sorted(index.items()))
