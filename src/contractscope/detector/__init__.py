"""Pattern-based smart-contract vulnerability detection."""

from contractscope.detector.engine import Detector
from contractscope.detector.models import Finding, ScanResult, Severity

__all__ = ["Detector", "Finding", "ScanResult", "Severity"]
