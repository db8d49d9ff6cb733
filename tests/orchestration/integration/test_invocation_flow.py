"""End-to-end invocation flow through real subprocesses."""

from __future__ import annotations

import json
import os
import stat
import sys
from pathlib import Path

import pytest
from moqt_interop_runner.configuration import resolve_invocation_settings
from moqt_interop_runner.orchestration import run_interop_invocation
from moqt_interop_runner.results_ledger import load_ledger
from moqt_interop_runner.run_execution import EXIT_TIMED_OUT

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")

FAKE_MAKE = """#!/bin/sh
echo "fake make $*"
case "$*" in
  *slow.example.com*) sleep 30 ;;
  *broken.example.com*) exit 2 ;;
esac
exit 0
"""


def _install_fake_make(tmp_path: Path, monkeypatch) -> None:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    make = bin_dir / "make"
    make.write_text(FAKE_MAKE, encoding="utf-8")
    make.chmod(make.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")


def _write_registry(tmp_path: Path) -> Path:
    document = {
        "implementations": {
            "moq-rs": {
                "draft_versions": ["draft-14"],
                "roles": {
                    "client": {"docker": {"image": "moq-rs-client:latest"}},
                    "relay": {
                        "docker": {"image": "moq-rs-relay:latest"},
                        "remote": [
                            {"url": "moqt://broken.example.com:4443"},
                            {"url": "moqt://slow.example.com:4443"},
                        ],
                    },
                },
            }
        }
    }
    path = tmp_path / "implementations.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def test_invocation_maps_exit_codes_and_timeouts_into_the_ledger(
    tmp_path: Path, monkeypatch
) -> None:
    _install_fake_make(tmp_path, monkeypatch)
    monkeypatch.chdir(tmp_path)
    settings = resolve_invocation_settings(
        registry_path=_write_registry(tmp_path),
        results_root=tmp_path / "results",
        timeout_seconds=1,
    )

    outcome = run_interop_invocation(settings)

    document = load_ledger(outcome.ledger_path)
    assert [(entry.mode, entry.exit_code) for entry in document.runs] == [
        ("docker", 0),
        ("remote-quic", 2),
        ("remote-quic", EXIT_TIMED_OUT),
    ]
    assert [entry.log_file for entry in document.runs] == [
        "moq-rs_to_moq-rs_docker.log",
        "moq-rs_to_moq-rs_remote-quic.log",
        "moq-rs_to_moq-rs_remote-quic-2.log",
    ]
    assert outcome.tally.passed == 1
    assert outcome.tally.failed == 2
    assert outcome.exit_status == 1

    docker_log = (outcome.results_dir / "moq-rs_to_moq-rs_docker.log").read_text(
        encoding="utf-8"
    )
    assert "$ make test RELAY_IMAGE=moq-rs-relay:latest CLIENT=moq-rs" in docker_log
    assert (
        "fake make test RELAY_IMAGE=moq-rs-relay:latest CLIENT=moq-rs "
        "CLIENT_IMAGE=moq-rs-client:latest MOQT_VERSION=draft-14"
    ) in docker_log


def test_missing_make_is_recorded_as_could_not_start(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("PATH", str(tmp_path / "empty-bin"))
    monkeypatch.chdir(tmp_path)
    settings = resolve_invocation_settings(
        registry_path=_write_registry(tmp_path),
        results_root=tmp_path / "results",
        docker_only=True,
    )

    outcome = run_interop_invocation(settings)

    (entry,) = load_ledger(outcome.ledger_path).runs
    assert entry.exit_code == 127
    assert entry.status.value == "fail"
    log_text = (outcome.results_dir / entry.log_file).read_text(encoding="utf-8")
    assert "could not start" in log_text
