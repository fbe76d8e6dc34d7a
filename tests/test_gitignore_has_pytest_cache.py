from pathlib import Path


def test_gitignore_covers_pytest_cache_and_fatal_dumps() -> None:
    gitignore = Path(__file__).resolve().parents[1] / ".gitignore"
    lines = [line.strip() for line in gitignore.read_text().splitlines()]
    assert ".pytest_cache/" in lines
    assert "metamask_fatal_*.txt" in lines
