"""
Policy module: decides what a pre-flight response says about a provider.

The logic is:
- explicit
- status-code only (the body is diagnostic text, never inspected)
- easily auditable
"""

from enum import Enum


class PreflightOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TRANSPORT_FAILURE = "transport_failure"


def classify_preflight(status: int) -> PreflightOutcome:
    # Upstream errors are treated like the network failing underneath us
    if status >= 500:
        return PreflightOutcome.TRANSPORT_FAILURE

    if status >= 400:
        return PreflightOutcome.REJECTED

    return PreflightOutcome.ACCEPTED
