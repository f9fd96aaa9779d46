# services/log_classifier.py

"""
Stderr line classification and user-facing hints for known tool failures
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, Sequence, Tuple


class LineKind(str, Enum):
    INFO = "info"
    ERROR = "error"


class LineClassifier(Protocol):
    def classify(self, line: str) -> LineKind:
        ...


class KeywordClassifier:
    """Tags a line as an error when it mentions any of the keywords, case-insensitively.

    Build tools write progress and warnings to stderr too, so this is only a
    labelling aid. The exit code decides whether a command failed.
    """

    def __init__(self, keywords: Sequence[str] = ("error", "fail")):
        self.keywords = tuple(k.lower() for k in keywords)

    def classify(self, line: str) -> LineKind:
        lowered = line.lower()
        if any(keyword in lowered for keyword in self.keywords):
            return LineKind.ERROR
        return LineKind.INFO


@dataclass(frozen=True)
class DiagnosticHint:
    pattern: str
    lines: Tuple[str, ...]

    def matches(self, line: str) -> bool:
        return self.pattern in line


KNOWN_HINTS: Tuple[DiagnosticHint, ...] = (
    # electron-builder unpacking winCodeSign without symlink privileges
    DiagnosticHint(
        pattern="Cannot create symbolic link",
        lines=(
            "> ⚠️ HINT: This is a Windows permission issue.",
            "> ⚠️ TRY: Run your terminal/command prompt as Administrator.",
        ),
    ),
)


def hints_for(line: str, hints: Sequence[DiagnosticHint] = KNOWN_HINTS) -> List[str]:
    collected: List[str] = []
    for hint in hints:
        if hint.matches(line):
            collected.extend(hint.lines)
    return collected
