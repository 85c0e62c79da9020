"""Detector engine — runs the registered checks over contract text or a tree."""

from __future__ import annotations

import logging
import os
import re
import time
from collections.abc import Iterator, Sequence
from pathlib import Path

from contractscope.detector.checks import CHECKS, Check, normalize
from contractscope.detector.models import CheckResult, Finding, ScanResult
from contractscope.errors import InvalidInputError

logger = logging.getLogger(__name__)

# Contract source extensions picked up by directory scans
_CONTRACT_EXTENSIONS = {".sol", ".vy"}

# Directories to always skip
_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    "artifacts",
    "cache",
    "out",
    "build",
    "dist",
    "typechain-types",
}

# Max file size to scan (1 MB)
_MAX_FILE_SIZE = 1_048_576


class Detector:
    """Evaluates an ordered list of checks against contract source."""

    def __init__(
        self,
        checks: Sequence[Check] | None = None,
        exclude_patterns: list[str] | None = None,
    ) -> None:
        self._checks = list(checks if checks is not None else CHECKS)
        self._exclude = set(exclude_patterns or [])

    @property
    def checks(self) -> list[Check]:
        return list(self._checks)

    def iter_checks(self, text: str) -> Iterator[tuple[Check, CheckResult]]:
        """Yield each check with its verdict, in registry order."""
        validate_text(text)
        normalized = normalize(text)
        for check in self._checks:
            yield check, _run_check(check, normalized)

    def detect(self, text: str) -> list[Finding]:
        """Return the findings for ``text``."""
        return [
            make_finding(check, result)
            for check, result in self.iter_checks(text)
            if result.found
        ]

    def scan(self, directory: str | Path) -> ScanResult:
        """Scan every contract file under ``directory``."""
        directory = Path(directory).resolve()
        start = time.time()
        result = ScanResult(directory=str(directory))

        for file_path in self._walk(directory):
            try:
                content = file_path.read_text(encoding="utf-8", errors="ignore")
            except (OSError, PermissionError) as e:
                logger.debug("Skipping %s: %s", file_path, e)
                result.files_skipped += 1
                continue

            if not content.strip():
                logger.debug("Skipping empty file %s", file_path)
                result.files_skipped += 1
                continue

            result.files_scanned += 1
            findings = self.detect(content)
            if findings:
                result.findings[str(file_path)] = findings

        result.duration = time.time() - start
        return result

    def _walk(self, directory: Path):
        """Walk directory yielding contract files."""
        for root, dirs, files in os.walk(directory):
            dirs[:] = [
                d for d in dirs if d not in _SKIP_DIRS and d not in self._exclude
            ]

            for name in files:
                path = Path(root) / name
                if path.suffix.lower() not in _CONTRACT_EXTENSIONS:
                    continue
                if name in self._exclude:
                    continue
                try:
                    if path.stat().st_size > _MAX_FILE_SIZE:
                        continue
                except OSError:
                    continue
                yield path


def make_finding(check: Check, result: CheckResult) -> Finding:
    """Build the immutable finding for a positive check result."""
    location = f"line {result.line}" if result.line else "contract"
    return Finding(
        id=f"{check.id}-{result.line}",
        check_id=check.id,
        name=check.finding_name or check.name,
        severity=check.severity,
        description=result.details or check.description,
        location=location,
        risk_score=check.risk_score,
        code=result.excerpt,
    )


def _run_check(check: Check, text: str) -> CheckResult:
    try:
        return check.predicate(text)
    except (re.error, ValueError, TypeError, IndexError) as e:
        logger.debug("Check %s failed on input, treating as clean: %s", check.id, e)
        return CheckResult(found=False)


def validate_text(text: object) -> None:
    if not isinstance(text, str):
        raise InvalidInputError(
            f"Contract source must be text, got {type(text).__name__}"
        )
    if not text.strip():
        raise InvalidInputError("Contract source is empty")
