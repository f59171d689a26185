"""Guardrails to keep kernel and read packages free of side effects and OS-specific dependencies."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "pathlib": re.compile(r"\bpathlib\b"),
    "open(": re.compile(r"(?<![A-Za-z0-9_])open\s*\("),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "warnings.": re.compile(r"\bwarnings\."),
    "datetime.now": re.compile(r"\bdatetime\.now\b"),
    "time.time": re.compile(r"\btime\.time\b"),
    "os.path": re.compile(r"\bos\.path\b"),
    "os.environ": re.compile(r"\bos\.environ\b"),
}

SRC = Path(__file__).resolve().parents[1] / "src" / "crosswire"


def _offenders(directory: Path):
    offenders = []
    for path in sorted(directory.glob("*.py")):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")
    return offenders


def test_kernel_has_no_forbidden_tokens():
    offenders = _offenders(SRC / "kernel")
    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)


def test_read_has_no_forbidden_tokens():
    offenders = _offenders(SRC / "read")
    assert not offenders, "Forbidden read tokens found: " + ", ".join(offenders)


def test_kernel_does_not_read_settings():
    """Settings are passed in from api/flows; the kernel takes plain arguments."""
    for path in (SRC / "kernel").glob("*.py"):
        assert "crosswire.config" not in path.read_text(encoding="utf-8"), path.name
