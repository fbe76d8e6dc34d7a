from pathlib import Path

import metamask_extractor


def test_repo_files_do_not_start_with_utf8_bom() -> None:
    root = Path(metamask_extractor.__file__).resolve().parent
    files = [
        root / "metamask_extractor.py",
        root / ".gitignore",
        root / "README.md",
        root / "pyproject.toml",
        *sorted((root / "tests").glob("*.py")),
    ]
    bad = []
    for path in files:
        if path.read_bytes().startswith(b"\xef\xbb\xbf"):
            bad.append(str(path.relative_to(root)))
    assert not bad, f"UTF-8 BOM present in: {bad}"
