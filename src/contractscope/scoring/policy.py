"""Versioned scoring policy — deduction tables loaded from YAML."""

from __future__ import annotations

import importlib.resources
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from contractscope.detector.models import Severity

_PRESET_PREFIX = "preset:"

DEFAULT_PRESET = "default"


@dataclass(frozen=True)
class ScoringPolicy:
    """Penalty tables for both scoring calibrations.

    ``severity_penalties`` drives scoring of a finding set by severity.
    ``rule_penalties`` drives the fast single-contract calibration and is
    keyed by check id. ``suppressed_by`` maps a check id to a source
    marker that cancels its rule penalty (e.g. a reentrancy guard).
    """

    name: str
    version: str
    severity_penalties: dict[Severity, int] = field(default_factory=dict)
    rule_penalties: dict[str, int] = field(default_factory=dict)
    suppressed_by: dict[str, str] = field(default_factory=dict)
    description: str = ""
    inherit: tuple[str, ...] = ()

    def severity_penalty(self, severity: Severity) -> int:
        return self.severity_penalties.get(severity, 0)

    def rule_penalty(self, check_id: str) -> int:
        return self.rule_penalties.get(check_id, 0)


def load_policy(path: str | Path, _resolved: set[str] | None = None) -> ScoringPolicy:
    """Load a scoring policy from a YAML file path."""
    text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Scoring policy YAML must be a mapping")
    return _build_policy(data, _resolved=_resolved if _resolved is not None else set())


def load_policy_from_string(text: str) -> ScoringPolicy:
    """Parse a YAML string into a ScoringPolicy, resolving inheritance."""
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Scoring policy YAML must be a mapping")
    return _build_policy(data, _resolved=set())


def default_policy() -> ScoringPolicy:
    """The bundled default calibration."""
    return _load_preset(DEFAULT_PRESET, set())


def _build_policy(data: dict, _resolved: set[str]) -> ScoringPolicy:
    name = data.get("name", "unnamed")

    if name in _resolved:
        raise ValueError(f"Circular scoring policy inheritance detected: {name}")
    _resolved.add(name)

    inherit_list = data.get("inherit", [])
    if isinstance(inherit_list, str):
        inherit_list = [inherit_list]

    severity_penalties: dict[Severity, int] = {}
    rule_penalties: dict[str, int] = {}
    suppressed_by: dict[str, str] = {}
    version = ""

    # Parents first so own values override
    for ref in inherit_list:
        parent = _load_ref(ref, _resolved)
        severity_penalties.update(parent.severity_penalties)
        rule_penalties.update(parent.rule_penalties)
        suppressed_by.update(parent.suppressed_by)
        version = parent.version

    severity_penalties.update(_parse_severity_penalties(data.get("severity_penalties", {})))
    rule_penalties.update(_parse_penalties(data.get("rule_penalties", {})))
    suppressed_by.update(
        {str(k): str(v) for k, v in (data.get("suppressed_by") or {}).items()}
    )

    if "version" in data:
        version = str(data["version"])
    if not version:
        raise ValueError(f"Scoring policy '{name}' has no version")

    return ScoringPolicy(
        name=name,
        version=version,
        severity_penalties=severity_penalties,
        rule_penalties=rule_penalties,
        suppressed_by=suppressed_by,
        description=data.get("description", ""),
        inherit=tuple(inherit_list),
    )


def _parse_severity_penalties(raw: dict) -> dict[Severity, int]:
    return {Severity(str(k)): v for k, v in _parse_penalties(raw).items()}


def _parse_penalties(raw: dict) -> dict[str, int]:
    if not isinstance(raw, dict):
        raise ValueError("Penalty tables must be mappings")
    penalties: dict[str, int] = {}
    for key, value in raw.items():
        penalty = int(value)
        if penalty < 0:
            raise ValueError(f"Penalty for '{key}' must not be negative")
        penalties[str(key)] = penalty
    return penalties


def _load_ref(ref: str, _resolved: set[str]) -> ScoringPolicy:
    if ref.startswith(_PRESET_PREFIX):
        return _load_preset(ref[len(_PRESET_PREFIX) :], _resolved)
    return load_policy(ref, _resolved=_resolved)


def _load_preset(name: str, _resolved: set[str]) -> ScoringPolicy:
    pkg = importlib.resources.files("contractscope.scoring.presets")
    text = pkg.joinpath(f"{name}.yaml").read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return _build_policy(data, _resolved)
