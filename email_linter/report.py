"""Render a LinterResult as JSON or as a plain-text report."""

import json

from email_linter.schemas.linter import LinterResult


def render_json(result: LinterResult) -> str:
    """The sender index as a JSON object, keys sorted."""
    return json.dumps(result.senders, sort_keys=True)


def render_text(result: LinterResult, max_senders: int) -> str:
    """Render the sender index for a human.

    Addresses with more than ``max_senders`` unique senders show only the count.
    """
    count = len(result.disposable_addresses)
    lines: list[str] = []
    if count == 1:
        lines.append("Your inbox's 1 disposable address and those it received from:")
    else:
        lines.append(
            f"Your inbox's {count} disposable addresses and those they received from:"
        )

    for address in sorted(result.senders):
        senders = result.senders[address]
        lines.append(address)
        if len(senders) > max_senders:
            lines.append(
                f"\tReceived emails from {len(senders)} unique addresses. "
                f"Use `--max-senders {len(senders)}` if you want to see them."
            )
        else:
            lines.extend(f"\t{sender}" for sender in senders)

    return "\n".join(lines)
