"""Command-line entry point for nodelint."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .config import Config, load_config
from .errors import ConfigurationError, TreeFormatError
from .result import Finding, Report, ScanResult, format_summary_table
from .rules import PatternRule, Rule, SelectionPolicy, be_eql, spec_only
from .runner import Runner
from .severity import Severity
from .utils import iter_tree_files, load_tree

BUILTIN_RULES: Dict[str, Callable[..., PatternRule]] = {
    be_eql.RULE_ID: be_eql.build_rule,
}
DEFAULT_SOURCE_DIRS = ("spec",)

logger = logging.getLogger("nodelint")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodelint",
        description="Apply pattern rules to serialized syntax trees",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Tree files (.json/.yaml/.yml) or directories to inspect.",
    )
    parser.add_argument(
        "--config",
        "-c",
        dest="config_path",
        default=None,
        help="Path to the YAML configuration (defaults to .nodelint.yml if present).",
    )
    parser.add_argument(
        "--only",
        dest="only",
        action="append",
        default=[],
        help="Run only the given rule identifier (repeatable).",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Console output format.",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the JSON report (e.g., artifacts/nodelint.json).",
    )
    parser.add_argument(
        "--fail-level",
        dest="fail_level",
        type=Severity.parse,
        default=Severity.CONVENTION,
        help="Minimum severity that fails the run (defaults to CONVENTION).",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop inspecting each tree after its first finding.",
    )
    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="Print the configured rules and exit.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable).",
    )
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.handlers[:] = [handler]
    logger.setLevel(level)


def load_rules(config: Config, only: Iterable[str] = ()) -> List[Rule]:
    """Build the enabled rules, built-ins first and then custom rules in file order."""

    rules: List[Rule] = []
    for rule_id, factory in BUILTIN_RULES.items():
        rule_config = config.for_rule(rule_id)
        if not rule_config.enabled:
            continue
        rule = factory(spec_patterns=config.spec_patterns)
        if rule_config.severity is not None:
            rule = rule.with_options(severity=rule_config.severity)
        rules.append(rule)

    for rule_id, rule_config in config.rules.items():
        if not rule_config.is_custom or not rule_config.enabled:
            continue
        assert rule_config.pattern is not None and rule_config.message is not None
        rules.append(
            PatternRule.from_text(
                rule_id,
                rule_config.pattern,
                rule_config.message,
                selection=SelectionPolicy(capture=rule_config.capture, location=rule_config.location),
                severity=rule_config.severity or Severity.CONVENTION,
                enabled_for=spec_only(config.spec_patterns) if rule_config.spec_only else None,
            )
        )

    selected = set(only)
    if selected:
        unknown = selected - {rule.id for rule in rules}
        if unknown:
            raise ConfigurationError(f"Unknown or disabled rules: {', '.join(sorted(unknown))}")
        rules = [rule for rule in rules if rule.id in selected]
    return rules


def run_scan(
    runner: Runner,
    paths: Iterable[str],
    fail_level: Severity = Severity.CONVENTION,
    fail_fast: bool = False,
) -> ScanResult:
    result = ScanResult(fail_level=fail_level)
    for tree_path in iter_tree_files(paths):
        loaded = load_tree(tree_path)
        if loaded is None:
            logger.error("Tree file not found: %s", tree_path)
            result.add_report(_unreadable_report(str(tree_path), "Tree file not found"))
            continue
        tree, source_path = loaded
        result.add_report(runner.run(tree, path=source_path, stop_after_first=fail_fast))
    return result


def _unreadable_report(path: str, message: str) -> Report:
    report = Report(path=path)
    report.add_finding(Finding(rule="nodelint", message=message, severity=Severity.INTERNAL, path=path))
    return report


def write_output(result: ScanResult, output_path: Optional[str], report_format: str) -> None:
    payload = json.dumps(result.to_dict(), indent=2)
    if report_format == "json":
        print(payload)
    else:
        for finding in result.findings:
            print(finding)
        if result.findings:
            print()
        print(format_summary_table(result))

    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload, encoding="utf-8")
        if report_format != "json":
            print(f"\nReport written to {output_path}")


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config_path = Path(args.config_path) if args.config_path else None
        config = load_config(config_path, known_rules=BUILTIN_RULES)
        runner = Runner(load_rules(config, args.only))
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    if args.list_rules:
        for rule in runner.rules:
            print(f"{rule.id} ({rule.severity.value})")
        return 0

    sources = args.paths or list(DEFAULT_SOURCE_DIRS)
    try:
        result = run_scan(runner, sources, fail_level=args.fail_level, fail_fast=args.fail_fast)
    except TreeFormatError as exc:
        logger.error("%s", exc)
        return 2
    write_output(result, args.output_path, args.format)
    return result.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
