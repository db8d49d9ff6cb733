"""CLI error-handling tests."""

from __future__ import annotations

from pathlib import Path

from moqt_interop_runner.cli import main

REGISTRY = """
implementations:
  moq-rs:
    draft_versions: [draft-14]
    roles:
      client:
        docker:
          image: moq-rs-client
      relay:
        docker:
          image: moq-rs-relay
"""


def _registry(tmp_path: Path) -> Path:
    path = tmp_path / "implementations.yaml"
    path.write_text(REGISTRY, encoding="utf-8")
    return path


def test_missing_required_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["export-report"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "Missing option" in captured.err
    assert "--ledger" in captured.err
    assert "Traceback" not in captured.err


def test_unknown_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["run", "--bogus"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "No such option: --bogus" in captured.err
    assert "Traceback" not in captured.err


def test_missing_registry_is_a_configuration_error(tmp_path: Path, capsys) -> None:
    exit_code = main(["run", "--registry", str(tmp_path / "missing.json")])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Registry file not found" in captured.err
    assert "Traceback" not in captured.err


def test_conflicting_target_filters_fail_before_any_run(tmp_path: Path, capsys) -> None:
    results_root = tmp_path / "results"

    exit_code = main(
        [
            "run",
            "--registry",
            str(_registry(tmp_path)),
            "--results-dir",
            str(results_root),
            "--docker-only",
            "--remote-only",
        ]
    )
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "mutually exclusive" in captured.err
    assert not results_root.exists()


def test_conflicting_transport_flags_are_rejected(tmp_path: Path, capsys) -> None:
    exit_code = main(
        [
            "run",
            "--registry",
            str(_registry(tmp_path)),
            "--results-dir",
            str(tmp_path / "results"),
            "--quic-only",
            "--webtransport-only",
        ]
    )
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Only one transport filter" in captured.err


def test_unknown_relay_is_rejected(tmp_path: Path, capsys) -> None:
    exit_code = main(
        [
            "run",
            "--registry",
            str(_registry(tmp_path)),
            "--results-dir",
            str(tmp_path / "results"),
            "--relay",
            "nope",
        ]
    )
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Unknown relay implementation: nope" in captured.err


def test_generate_registry_refuses_to_overwrite(tmp_path: Path, capsys) -> None:
    existing = _registry(tmp_path)

    exit_code = main(["generate-registry", "--output", str(existing)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "already exists" in captured.err
    assert existing.read_text(encoding="utf-8") == REGISTRY


def test_export_report_rejects_unreadable_ledger(tmp_path: Path, capsys) -> None:
    ledger = tmp_path / "summary.json"
    ledger.write_text("{broken", encoding="utf-8")

    exit_code = main(["export-report", "--ledger", str(ledger)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Traceback" not in captured.err
    assert not ledger.with_suffix(".xlsx").exists()
