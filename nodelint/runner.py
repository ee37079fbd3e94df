"""Rule registry and tree runner."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError
from .pattern import compile_pattern
from .result import Finding, Report
from .rules import MessageTemplate, PatternRule, Rule, SelectionPolicy
from .severity import Severity
from .tree import Node

logger = logging.getLogger(__name__)


class Runner:
    """Hold registered rules and apply them to trees.

    Rules are registered first, then the runner is frozen; the first call to
    :meth:`run` freezes it implicitly. A frozen runner only reads its rule
    tuple, so separate trees may be analyzed concurrently.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: List[Rule] = []
        self._ids: Dict[str, Rule] = {}
        self._frozen: Optional[Tuple[Rule, ...]] = None
        for rule in rules:
            self.register(rule)

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._frozen if self._frozen is not None else tuple(self._rules)

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def register(self, rule: Rule) -> Rule:
        if self._frozen is not None:
            raise ConfigurationError(f"Cannot register {rule.id}: runner is frozen")
        if rule.id in self._ids:
            raise ConfigurationError(f"Duplicate rule identifier {rule.id}")
        self._rules.append(rule)
        self._ids[rule.id] = rule
        logger.debug("Registered rule %s", rule.id)
        return rule

    def register_pattern(
        self,
        rule_id: str,
        pattern_spec: str,
        message_template: MessageTemplate,
        selection_policy: Optional[SelectionPolicy] = None,
        severity: Severity = Severity.CONVENTION,
    ) -> Rule:
        """Compile ``pattern_spec`` and register it as a new rule."""

        rule = PatternRule(
            id=rule_id,
            message=message_template,
            pattern=compile_pattern(pattern_spec),
            selection=selection_policy or SelectionPolicy(),
            severity=severity,
        )
        return self.register(rule)

    def freeze(self) -> None:
        if self._frozen is None:
            self._frozen = tuple(self._rules)

    def get(self, rule_id: str) -> Rule:
        try:
            return self._ids[rule_id]
        except KeyError:
            raise ConfigurationError(f"Unknown rule {rule_id}") from None

    def run(self, tree: Node, path: Optional[str] = None, stop_after_first: bool = False) -> Report:
        """Walk ``tree`` in pre-order and apply every rule at every node.

        When ``path`` is given, rules whose enablement predicate rejects it
        are skipped for the whole tree.
        """

        self.freeze()
        rules = self.rules
        if path is not None:
            rules = tuple(rule for rule in rules if rule.applies_to(path))

        report = Report(path=path)
        if not rules:
            return report

        visited = 0
        for node in tree.walk():
            visited += 1
            for rule in rules:
                for finding in self._apply(rule, node, path):
                    report.add_finding(finding)
                    if stop_after_first:
                        logger.info("Stopping after first finding in %s", path or "<tree>")
                        return report
        logger.info(
            "Inspected %d nodes in %s with %d rules: %d findings",
            visited,
            path or "<tree>",
            len(rules),
            report.summary.total,
        )
        return report

    def _apply(self, rule: Rule, node: Node, path: Optional[str]) -> List[Finding]:
        try:
            return list(rule.apply(node, path))
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Rule %s failed on %s node", rule.id, node.kind)
            location = node.location.expression if node.location else None
            return [
                Finding(
                    rule=rule.id,
                    message=f"An error occurred while {rule.id} was inspecting {node.kind}: {exc}",
                    severity=Severity.INTERNAL,
                    location=location,
                    path=path,
                )
            ]
