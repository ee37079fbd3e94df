import json
from pathlib import Path

from nodelint import cli
from nodelint.severity import Severity

SAMPLES = Path(__file__).resolve().parent.parent / "samples"


def test_cli_generates_json_report(tmp_path, capsys):
    output_path = tmp_path / "nodelint.json"

    exit_code = cli.main(
        [
            str(SAMPLES / "spec" / "models" / "user_spec.rb.json"),
            "--out",
            str(output_path),
        ]
    )

    captured = capsys.readouterr()
    assert "Inspection Summary" in captured.out
    assert "RSpec/BeEql" in captured.out
    assert exit_code == 1
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["convention"] == 2
    assert data["passed"] is False
    findings = data["files"][0]["findings"]
    assert [finding["location"]["line"] for finding in findings] == [1, 2]
    assert findings[0]["location"]["column"] == 15


def test_cli_passes_on_clean_tree(tmp_path, capsys):
    exit_code = cli.main([str(SAMPLES / "spec" / "models" / "clean_spec.rb.yml"), "--format", "json"])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert data["passed"] is True
    assert data["files"][0]["path"] == "spec/models/clean_spec.rb"
    assert data["summary"]["convention"] == 0


def test_cli_scans_directories(capsys):
    exit_code = cli.main([str(SAMPLES), "--format", "json"])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert len(data["files"]) == 2
    assert sum(len(report["findings"]) for report in data["files"]) == 2


def test_cli_fail_level_above_findings_passes(capsys):
    exit_code = cli.main([str(SAMPLES), "--fail-level", "warning"])

    assert exit_code == 0
    assert "Status    : PASS" in capsys.readouterr().out


def test_cli_fail_fast_stops_after_first_finding(capsys):
    exit_code = cli.main([str(SAMPLES / "spec" / "models" / "user_spec.rb.json"), "--fail-fast", "--format", "json"])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert len(data["files"][0]["findings"]) == 1


def test_cli_skips_non_spec_files(tmp_path, capsys):
    tree_file = tmp_path / "user.rb.json"
    tree_file.write_text(
        (SAMPLES / "spec" / "models" / "user_spec.rb.json").read_text(encoding="utf-8"),
        encoding="utf-8",
    )

    exit_code = cli.main([str(tree_file)])

    assert exit_code == 0
    assert "Findings  : 0" in capsys.readouterr().out


def test_cli_config_disables_rule(tmp_path, capsys):
    config_file = tmp_path / "nodelint.yml"
    config_file.write_text("RSpec/BeEql:\n  Enabled: false\n", encoding="utf-8")

    exit_code = cli.main([str(SAMPLES), "--config", str(config_file)])

    assert exit_code == 0


def test_cli_list_rules(capsys):
    exit_code = cli.main(["--list-rules"])

    assert exit_code == 0
    assert "RSpec/BeEql (CONVENTION)" in capsys.readouterr().out


def test_cli_configuration_errors_exit_2(tmp_path, caplog):
    config_file = tmp_path / "nodelint.yml"
    config_file.write_text("Custom/Broken:\n  Pattern: (send\n  Message: broken\n", encoding="utf-8")

    exit_code = cli.main([str(SAMPLES), "--config", str(config_file)])

    assert exit_code == 2
    assert "Unclosed" in caplog.text


def test_cli_missing_tree_exits_2(tmp_path, capsys):
    exit_code = cli.main([str(tmp_path / "missing.json")])

    assert exit_code == 2
    assert "INTERNAL" in capsys.readouterr().out


def test_cli_malformed_tree_exits_2(tmp_path):
    tree_file = tmp_path / "bad_spec.rb.json"
    tree_file.write_text('{"children": []}', encoding="utf-8")

    assert cli.main([str(tree_file)]) == 2


def test_cli_default_fail_level_is_convention():
    args = cli.build_parser().parse_args([])

    assert args.fail_level is Severity.CONVENTION
    assert cli.build_parser().parse_args(["--fail-level", "error"]).fail_level is Severity.ERROR


def test_cli_deeply_nested_tree_exits_2(tmp_path):
    depth = 5000
    tree_file = tmp_path / "deep_spec.rb.json"
    tree_file.write_text(
        '{"type": "array", "children": [' * depth + '{"type": "int", "children": [1]}' + "]}" * depth,
        encoding="utf-8",
    )

    assert cli.main([str(tree_file)]) == 2


def test_cli_prints_full_severity_names(tmp_path, capsys):
    exit_code = cli.main([str(tmp_path / "missing.json")])

    lines = capsys.readouterr().out.splitlines()
    assert exit_code == 2
    assert lines[0].endswith(": INTERNAL: nodelint: Tree file not found")
