import json
from pathlib import Path

import metamask_extractor


def test_capture_fatal_exception_writes_fatal(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        exit_code = metamask_extractor.capture_fatal_exception(exc, log_dir=log_dir, errors_path=None)

    assert exit_code == 2
    fatal_files = list(log_dir.glob("metamask_fatal_*.txt"))
    assert len(fatal_files) == 1
    text = fatal_files[0].read_text(encoding="utf-8", errors="replace")
    assert "RuntimeError" in text


def test_capture_fatal_exception_uses_traceback(tmp_path: Path) -> None:
    errors_path = tmp_path / "errors.jsonl"

    try:
        raise ValueError("trace me")
    except ValueError as exc:
        captured = exc

    exit_code = metamask_extractor.capture_fatal_exception(captured, log_dir=tmp_path, errors_path=errors_path)

    assert exit_code != 0
    text = next(tmp_path.glob("metamask_fatal_*.txt")).read_text(encoding="utf-8", errors="replace")
    assert "ValueError: trace me" in text
    assert "test_capture_fatal_exception_uses_traceback" in text

    event = json.loads(errors_path.read_text(encoding="utf-8").splitlines()[-1])
    assert event["stage"] == "fatal"
    assert event["exc_type"] == "ValueError"


def test_capture_fatal_exception_falls_back_to_temp_dir(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("TEMP", str(tmp_path))

    exit_code = metamask_extractor.capture_fatal_exception(
        KeyError("missing"), log_dir=tmp_path / "does-not-exist", errors_path=None
    )

    assert exit_code == 2
    assert list(tmp_path.glob("metamask_fatal_*.txt"))
    assert "fatal traceback written to" in capsys.readouterr().err
