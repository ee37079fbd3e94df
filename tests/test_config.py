import pytest

from nodelint.cli import BUILTIN_RULES, load_rules
from nodelint.config import Config, load_config, parse_config
from nodelint.errors import ConfigurationError
from nodelint.rules import DEFAULT_SPEC_PATTERNS
from nodelint.runner import Runner
from nodelint.severity import Severity

from builders import expectation


def test_missing_default_config_yields_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    config = load_config(None, known_rules=BUILTIN_RULES)

    assert config == Config()
    assert config.spec_patterns == DEFAULT_SPEC_PATTERNS


def test_default_config_file_is_picked_up(tmp_path, monkeypatch):
    (tmp_path / ".nodelint.yml").write_text("RSpec/BeEql:\n  Enabled: false\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    config = load_config(None, known_rules=BUILTIN_RULES)

    assert config.for_rule("RSpec/BeEql").enabled is False
    assert load_rules(config) == []


def test_missing_explicit_config_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "absent.yml")


def test_invalid_yaml_is_a_configuration_error(tmp_path):
    config_file = tmp_path / "broken.yml"
    config_file.write_text("RSpec/BeEql: [\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_config(config_file, known_rules=BUILTIN_RULES)


def test_severity_and_spec_patterns_reach_builtin_rules():
    config = parse_config(
        {
            "AllCops": {"SpecPatterns": r"_test\.rb$"},
            "RSpec/BeEql": {"Severity": "warning"},
        },
        known_rules=BUILTIN_RULES,
    )

    (rule,) = load_rules(config)

    assert rule.severity is Severity.WARNING
    assert rule.applies_to("test/user_test.rb")
    assert not rule.applies_to("spec/user_spec.rb")


def test_custom_pattern_rules_are_built_after_builtins():
    config = parse_config(
        {
            "Custom/NoSleep": {
                "Pattern": "(send nil :sleep ...)",
                "Message": "Do not sleep in specs.",
                "Location": "selector",
                "Severity": "ERROR",
                "SpecOnly": True,
            },
        },
        known_rules=BUILTIN_RULES,
    )

    rules = load_rules(config)

    assert [rule.id for rule in rules] == ["RSpec/BeEql", "Custom/NoSleep"]
    assert rules[1].severity is Severity.ERROR
    assert rules[1].applies_to("spec/a_spec.rb")
    assert not rules[1].applies_to("lib/a.rb")


def test_only_restricts_rules():
    config = parse_config({"Custom/Eq": {"Pattern": "(send nil :eq _)", "Message": "eq"}}, known_rules=BUILTIN_RULES)

    rules = load_rules(config, only=["Custom/Eq"])

    assert [rule.id for rule in rules] == ["Custom/Eq"]
    report = Runner(rules).run(expectation(matcher="eq"))
    assert [finding.message for finding in report.findings] == ["eq"]


def test_only_with_unknown_rule_is_an_error():
    with pytest.raises(ConfigurationError):
        load_rules(Config(), only=["Custom/Missing"])


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"AllCops": []},
        {"AllCops": {"SpecPatterns": 3}},
        {"RSpec/BeEql": "off"},
        {"RSpec/BeEql": {"Enabled": "no"}},
        {"RSpec/BeEql": {"Severity": "LOUD"}},
        {"RSpec/BeEql": {"Colour": "red"}},
        {"RSpec/BeEql": {"Pattern": "(send)", "Message": "x"}},
        {"Custom/Unknown": {"Enabled": True}},
        {"Custom/Half": {"Pattern": "(send)"}},
        {"Custom/Capture": {"Pattern": "(send)", "Message": "x", "Capture": True}},
        {"Custom/Spec": {"Pattern": "(send)", "Message": "x", "SpecOnly": "no"}},
    ],
)
def test_invalid_configuration_is_rejected(data):
    with pytest.raises(ConfigurationError):
        parse_config(data, known_rules=BUILTIN_RULES)


def test_malformed_custom_pattern_fails_when_rules_are_built():
    config = parse_config({"Custom/Broken": {"Pattern": "(send", "Message": "x"}}, known_rules=BUILTIN_RULES)

    with pytest.raises(ConfigurationError):
        load_rules(config)
