import logging

import pytest

from nodelint.errors import ConfigurationError, PatternSyntaxError
from nodelint.rules import PatternRule, SelectionPolicy, be_eql
from nodelint.runner import Runner
from nodelint.severity import Severity
from nodelint.tree import s

from builders import example_block, expectation, literal


def int_rule(rule_id="Test/Int", **options):
    return PatternRule.from_text(rule_id, "(int $_)", "integer {0}", **options)


def exploding_rule(rule_id="Test/Explodes"):
    def predicate(node):
        if node.kind == "int":
            raise RuntimeError("boom")
        return None

    return PatternRule(id=rule_id, message="never", predicate=predicate)


def test_register_rejects_duplicate_identifiers():
    runner = Runner([int_rule()])

    with pytest.raises(ConfigurationError):
        runner.register(int_rule())


def test_register_after_run_is_rejected():
    runner = Runner([int_rule()])
    runner.run(s("int", 1))

    assert runner.frozen
    with pytest.raises(ConfigurationError):
        runner.register(int_rule("Test/Other"))


def test_register_pattern_compiles_and_registers():
    runner = Runner()

    rule = runner.register_pattern(
        "Test/Eql",
        "(send nil $:eql _)",
        "use be",
        SelectionPolicy(location="selector"),
    )

    assert runner.get("Test/Eql") is rule
    report = runner.run(expectation())
    assert [finding.rule for finding in report.findings] == ["Test/Eql"]
    assert report.findings[0].location.column == 15


def test_register_pattern_surfaces_syntax_errors():
    runner = Runner()

    with pytest.raises(PatternSyntaxError):
        runner.register_pattern("Test/Broken", "(send nil", "broken")
    assert runner.rules == ()


def test_get_unknown_rule():
    with pytest.raises(ConfigurationError):
        Runner().get("Test/Missing")


def test_findings_follow_preorder_then_registration_order():
    tree = s("begin", s("int", 1), s("array", s("int", 2)), s("int", 3))
    runner = Runner([int_rule("Test/A"), int_rule("Test/B")])

    report = runner.run(tree)

    assert [(finding.rule, finding.message) for finding in report.findings] == [
        ("Test/A", "integer 1"),
        ("Test/B", "integer 1"),
        ("Test/A", "integer 2"),
        ("Test/B", "integer 2"),
        ("Test/A", "integer 3"),
        ("Test/B", "integer 3"),
    ]


def test_shallower_site_precedes_nested_site():
    inner = expectation(value=literal("int", 2, text="2"), line=2)
    outer = s(
        "send",
        s("send", None, "expect", inner),
        "to",
        s("send", None, "eql", s("int", 1)),
    )

    report = Runner([be_eql.get_rule()]).run(outer)

    assert [finding.location for finding in report.findings] == [None, inner.children[2].location.part("selector")]


def test_runs_are_deterministic():
    tree = example_block(
        "compares",
        expectation(line=2),
        expectation(value=literal("sym", "a", text=":a"), line=3),
        s("int", 4),
    )
    runner = Runner([be_eql.get_rule(), int_rule()])

    first = runner.run(tree, path="spec/a_spec.rb")
    second = runner.run(tree, path="spec/a_spec.rb")

    assert first == second
    assert first.findings == second.findings


def test_unrelated_rules_do_not_change_findings():
    tree = example_block("compares", expectation(line=2), expectation(matcher="eq", line=3))

    alone = Runner([be_eql.get_rule()]).run(tree)
    together = Runner([int_rule(), be_eql.get_rule(), exploding_rule()]).run(tree)

    assert [finding for finding in together.findings if finding.rule == be_eql.RULE_ID] == alone.findings


def test_failing_rule_is_isolated(caplog):
    tree = s("array", s("int", 1), s("int", 2))
    runner = Runner([exploding_rule(), int_rule()])

    with caplog.at_level(logging.ERROR, logger="nodelint"):
        report = runner.run(tree, path="spec/a_spec.rb")

    assert [(finding.rule, finding.severity) for finding in report.findings] == [
        ("Test/Explodes", Severity.INTERNAL),
        ("Test/Int", Severity.CONVENTION),
        ("Test/Explodes", Severity.INTERNAL),
        ("Test/Int", Severity.CONVENTION),
    ]
    assert "boom" in report.findings[0].message
    assert report.summary.internal == 2
    assert len(report.internal_errors) == 2
    assert "Rule Test/Explodes failed on int node" in caplog.text


def test_broken_message_template_becomes_internal_finding():
    runner = Runner()
    runner.register_pattern("Test/Template", "int", "value {0}")

    report = runner.run(s("int", 1))

    assert report.findings[0].severity is Severity.INTERNAL


def test_stop_after_first_finding():
    tree = s("array", s("int", 1), s("int", 2))

    report = Runner([int_rule()]).run(tree, stop_after_first=True)

    assert [finding.message for finding in report.findings] == ["integer 1"]


def test_path_filter_skips_rules_for_the_whole_run():
    rule = int_rule(enabled_for=lambda path: path.endswith(".rb"))
    runner = Runner([rule])

    assert runner.run(s("int", 1), path="notes.txt").findings == []
    assert len(runner.run(s("int", 1), path="a.rb").findings) == 1
    assert runner.run(s("int", 1), path="notes.txt").path == "notes.txt"


def test_every_node_is_visited_once():
    seen = []

    def record(node):
        seen.append(node.kind)
        return None

    tree = example_block("visits", expectation(line=2))
    Runner([PatternRule(id="Test/Record", message="", predicate=record)]).run(tree)

    assert seen == [node.kind for node in tree.walk()]
    assert len(seen) == 9


def test_internal_and_info_findings_print_distinct_severities():
    runner = Runner([exploding_rule(), int_rule(severity=Severity.INFO)])

    report = runner.run(s("int", 1), path="spec/a_spec.rb")

    printed = [str(finding) for finding in report.findings]
    assert ": INTERNAL: Test/Explodes: " in printed[0]
    assert printed[1] == "spec/a_spec.rb: INFO: Test/Int: integer 1"
