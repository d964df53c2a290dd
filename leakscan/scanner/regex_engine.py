"""Rule matcher — applies the detection corpus to one candidate string.

Provides:
  - ``RuleMatch``: frozen dataclass for one accepted rule hit (INTERNAL ONLY).
  - ``is_valid_credential()``: denylist + shape check applied to every captured value.
  - ``match_rules()``: apply all pre-compiled rules to a string, in corpus order.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file.
  - Lint gate: grep -r "^import re$|^from re import|^import re " leakscan/scanner/
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from leakscan.constants import MIN_CREDENTIAL_LENGTH
from leakscan.scanner.definitions import (
    CREDENTIAL_DENYLIST,
    CREDENTIAL_SHAPES,
    DETECTION_RULES,
    DetectionRule,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# RuleMatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleMatch:
    """A rule hit whose captured value passed ``is_valid_credential()``.

    INTERNAL TYPE — the engine turns it into a ``MatchResult`` once the byte offset
    and context are resolved.

    Fields:
        rule:        The DetectionRule that matched.
        full_match:  Entire text matched by the rule pattern (group 0).
        value:       Captured credential value (group 2 if present, else group 1).
        source:      The string the rule was applied to.
    """

    rule: DetectionRule
    full_match: str
    value: str
    source: str


# ---------------------------------------------------------------------------
# is_valid_credential()
# ---------------------------------------------------------------------------


def is_valid_credential(value: str) -> bool:
    """Return True when ``value`` looks like a secret rather than code or protocol noise.

    A value is rejected if it is shorter than MIN_CREDENTIAL_LENGTH or contains any
    CREDENTIAL_DENYLIST substring, even when it would otherwise fit a credential
    shape. Otherwise it must match at least one CREDENTIAL_SHAPES pattern.
    """
    if len(value) < MIN_CREDENTIAL_LENGTH:
        return False
    if any(token in value for token in CREDENTIAL_DENYLIST):
        return False
    return any(shape.search(value) for shape in CREDENTIAL_SHAPES)


# ---------------------------------------------------------------------------
# match_rules()
# ---------------------------------------------------------------------------


def _captured_value(m) -> Optional[str]:
    groups = m.groups()
    if not groups:
        return None
    value = groups[1] if len(groups) >= 2 else groups[0]
    return value or None


def match_rules(
    text: str,
    rules: Iterable[DetectionRule] = DETECTION_RULES,
) -> Iterator[RuleMatch]:
    """Yield every accepted rule hit in ``text``.

    Order: rules in corpus order, and for each rule its non-overlapping matches left
    to right. Hits whose captured value fails ``is_valid_credential()`` are dropped.
    Rule patterns without a capture group never produce hits.
    """
    for rule in rules:
        for m in rule.pattern.finditer(text):
            value = _captured_value(m)
            if value is None or not is_valid_credential(value):
                continue
            logger.debug("Rule %s accepted value of length %d", rule.name, len(value))
            yield RuleMatch(rule=rule, full_match=m.group(0), value=value, source=text)
