"""
Script: freshness.py
Created: 2026-10-14
Purpose: Decide whether an upstream payload carries new data
Keywords: freshness, payload, classifier, pollhub
Status: active
Prerequisites:
  - None
Changelog:
  - 2026-10-14: Initial version
See-Also: delivery.py
"""

from enum import Enum

# "", "{}" and "[]" all fit under this length. So do real 1-2 character
# payloads such as "0" or "ok"; devices rely on this threshold.
EMPTY_PAYLOAD_MAX_LENGTH = 2


class Freshness(str, Enum):
    EMPTY = "empty"
    REAL = "real"


def classify(payload: str) -> Freshness:
    """Classify a raw upstream payload by length alone."""
    if len(payload) <= EMPTY_PAYLOAD_MAX_LENGTH:
        return Freshness.EMPTY
    return Freshness.REAL


def is_empty(payload: str) -> bool:
    return classify(payload) is Freshness.EMPTY
