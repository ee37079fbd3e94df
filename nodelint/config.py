"""Configuration file support.

The configuration file is YAML keyed by rule identifier::

    AllCops:
      SpecPatterns: ['_spec\\.rb$', '(?:^|/)spec/']

    RSpec/BeEql:
      Enabled: true
      Severity: WARNING

    Custom/NoSleep:
      Pattern: (send nil :sleep ...)
      Message: Do not sleep in specs.
      Location: selector

A key that is not a built-in rule must carry ``Pattern`` and ``Message``
and defines a new rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Collection, Dict, Optional, Tuple

import yaml

from .errors import ConfigurationError
from .pattern import CaptureKey
from .rules import DEFAULT_SPEC_PATTERNS
from .severity import Severity
from .utils import read_yaml_file

DEFAULT_CONFIG_FILENAME = ".nodelint.yml"
GLOBAL_SECTION = "AllCops"
RULE_KEYS = {"Enabled", "Severity", "Pattern", "Message", "Location", "Capture", "SpecOnly"}

logger = logging.getLogger(__name__)


@dataclass
class RuleConfig:
    """Settings for one rule."""

    enabled: bool = True
    severity: Optional[Severity] = None
    pattern: Optional[str] = None
    message: Optional[str] = None
    location: str = "expression"
    capture: Optional[CaptureKey] = None
    spec_only: bool = False

    @property
    def is_custom(self) -> bool:
        return self.pattern is not None


@dataclass
class Config:
    spec_patterns: Tuple[str, ...] = DEFAULT_SPEC_PATTERNS
    rules: Dict[str, RuleConfig] = field(default_factory=dict)

    def for_rule(self, rule_id: str) -> RuleConfig:
        return self.rules.get(rule_id, RuleConfig())


def load_config(path: Optional[Path], known_rules: Collection[str] = ()) -> Config:
    """Read the configuration at ``path``.

    ``path=None`` looks for ``.nodelint.yml`` in the working directory and
    falls back to defaults when it is absent; an explicit path must exist.
    """

    explicit = path is not None
    config_path = path if path is not None else Path(DEFAULT_CONFIG_FILENAME)
    try:
        data = read_yaml_file(config_path)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if data is None:
        if explicit:
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        return Config()
    logger.info("Loaded configuration from %s", config_path)
    return parse_config(data, known_rules, source=str(config_path))


def parse_config(data: Any, known_rules: Collection[str] = (), source: str = "<config>") -> Config:
    if not isinstance(data, dict):
        raise ConfigurationError(f"{source}: configuration must be a mapping")

    config = Config()
    global_section = data.get(GLOBAL_SECTION)
    if global_section is None:
        global_section = {}
    if not isinstance(global_section, dict):
        raise ConfigurationError(f"{source}: {GLOBAL_SECTION} must be a mapping")
    if "SpecPatterns" in global_section:
        config.spec_patterns = _string_tuple(global_section["SpecPatterns"], f"{source}: {GLOBAL_SECTION}.SpecPatterns")

    for rule_id, section in data.items():
        if rule_id == GLOBAL_SECTION:
            continue
        where = f"{source}: {rule_id}"
        if not isinstance(section, dict):
            raise ConfigurationError(f"{where} must be a mapping")
        unknown = set(section) - RULE_KEYS
        if unknown:
            raise ConfigurationError(f"{where}: unknown keys {sorted(unknown)}")
        rule_config = _parse_rule(section, where)
        if rule_id not in known_rules and not rule_config.is_custom:
            raise ConfigurationError(f"{where}: unknown rule; custom rules need Pattern and Message")
        if rule_config.is_custom and rule_id in known_rules:
            raise ConfigurationError(f"{where}: built-in rules cannot override Pattern")
        config.rules[str(rule_id)] = rule_config
    return config


def _parse_rule(section: Dict[str, Any], where: str) -> RuleConfig:
    rule_config = RuleConfig()
    if "Enabled" in section:
        if not isinstance(section["Enabled"], bool):
            raise ConfigurationError(f"{where}: Enabled must be true or false")
        rule_config.enabled = section["Enabled"]
    if "Severity" in section:
        try:
            rule_config.severity = Severity.parse(section["Severity"])
        except ValueError as exc:
            raise ConfigurationError(f"{where}: {exc}") from None
    if "Pattern" in section or "Message" in section:
        if not isinstance(section.get("Pattern"), str) or not isinstance(section.get("Message"), str):
            raise ConfigurationError(f"{where}: Pattern and Message must both be strings")
        rule_config.pattern = section["Pattern"]
        rule_config.message = section["Message"]
    if "Location" in section:
        rule_config.location = str(section["Location"])
    if "Capture" in section:
        capture = section["Capture"]
        if not isinstance(capture, (int, str)) or isinstance(capture, bool):
            raise ConfigurationError(f"{where}: Capture must be an index or a name")
        rule_config.capture = capture
    if "SpecOnly" in section:
        if not isinstance(section["SpecOnly"], bool):
            raise ConfigurationError(f"{where}: SpecOnly must be true or false")
        rule_config.spec_only = section["SpecOnly"]
    return rule_config


def _string_tuple(value: Any, where: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise ConfigurationError(f"{where} must be a string or a list of strings")
