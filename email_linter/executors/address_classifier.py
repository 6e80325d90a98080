"""Address classifier: which recipients of one header field are disposable.

Stateless. Each call looks at one recipient list (to, cc or bcc) of one
email and has no memory of other fields or other emails.
"""

import logging
from collections.abc import Iterable

from email_linter.schemas.jmap import EmailAddress

logger = logging.getLogger(__name__)

# Some forwarding services rewrite a reply alias as
# "<original-local-part>_at_<real-alias>@<service-domain>".
FORWARD_MARKER = "_at_"


def address_domain(address: str) -> str | None:
    """Return the lower-cased text after the last ``@``, or None if there is no ``@``."""
    local, at, domain = address.lower().rpartition("@")
    if not at:
        return None
    return domain


def is_disposable(address: str, domains: Iterable[str]) -> bool:
    """True if the address's domain is exactly one of the protection domains."""
    domain = address_domain(address)
    return domain is not None and domain in domains


def collapse_forwarded(address: str) -> str:
    """Undo the ``<base>_at_<suffix>@<domain>`` rewrite, giving ``<suffix>@<domain>``.

    Addresses without the marker are returned lower-cased and otherwise unchanged.
    """
    address = address.lower()
    local, at, domain = address.rpartition("@")
    if not at or FORWARD_MARKER not in local:
        return address
    _base, _marker, suffix = local.rpartition(FORWARD_MARKER)
    if not suffix:
        return address
    return f"{suffix}@{domain}"


def classify_recipients(
    recipients: list[EmailAddress],
    domains: Iterable[str],
) -> list[str]:
    """Return the disposable addresses found in one recipient list.

    When the list holds more than one disposable candidate, forwarded-alias
    rewrites are collapsed first. If several distinct addresses still
    remain, all of them are returned and a warning is logged.

    Args:
        recipients: One email's ``to``, ``cc`` or ``bcc`` list.
        domains: Protection-service domains (lower-case).

    Returns:
        Lower-cased disposable addresses in first-seen order, no duplicates.
    """
    domains = frozenset(domains)
    candidates = [
        r.email.lower() for r in recipients if r.email and is_disposable(r.email, domains)
    ]
    if len(candidates) > 1:
        candidates = [collapse_forwarded(c) for c in candidates]

    survivors = list(dict.fromkeys(candidates))
    if len(survivors) > 1:
        logger.warning(
            "One email reached %d disposable addresses: %s",
            len(survivors),
            ", ".join(survivors),
        )
    return survivors
