"""Prefer ``be`` over ``eql`` for values that are compared by identity.

The ``be`` matcher compares by identity while the ``eql`` matcher compares
using ``eql?``. Integers, floats, booleans and symbols can be compared by
identity, so ``be`` is the stricter test::

    # bad
    expect(foo).to eql(1)
    expect(foo).to eql(:bar)

    # good
    expect(foo).to be(1)
    expect(foo).to be(:bar)

Only ``expect(...).to eql(...)`` is inspected. ``to_not`` and ``not_to`` are
left alone because ``!eql?`` is stricter than ``!equal?``, and ``eq`` is left
alone because ``==`` may coerce its operands, so ``a == b`` says nothing
about the type of ``a``.
"""

from __future__ import annotations

from typing import Tuple

from nodelint.severity import Severity

from . import DEFAULT_SPEC_PATTERNS, PatternRule, Rule, SelectionPolicy, spec_only

RULE_ID = "RSpec/BeEql"
PATTERN = "(send _ :to $(send nil :eql {true false int float sym}))"
MESSAGE = "Prefer identity comparison over equality comparison for this literal type."
DESCRIPTION = "Prefer `be` over `eql` for values that are compared by identity."


def build_rule(
    severity: Severity = Severity.CONVENTION,
    spec_patterns: Tuple[str, ...] = DEFAULT_SPEC_PATTERNS,
) -> PatternRule:
    return PatternRule.from_text(
        RULE_ID,
        PATTERN,
        MESSAGE,
        selection=SelectionPolicy(capture=0, location="selector"),
        severity=severity,
        enabled_for=spec_only(spec_patterns),
        description=DESCRIPTION,
    )


def get_rule() -> Rule:
    return build_rule()
