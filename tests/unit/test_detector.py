"""Tests for the vulnerability checks and the detector engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from contractscope.detector.checks import (
    CHECKS,
    check_access_control,
    check_gas,
    check_market_reference,
    check_overflow,
    check_reentrancy,
    check_tx_origin,
    get_check,
    normalize,
)
from contractscope.detector.engine import Detector
from contractscope.detector.models import Severity
from contractscope.errors import InvalidInputError


class TestNormalize:
    def test_strips_line_comments(self):
        assert normalize("x = 1; // x.call(y)\n") == "x = 1; \n"

    def test_block_comment_keeps_line_count(self):
        text = "a;\n/* one\ntwo\nthree */\nb;"
        out = normalize(text)
        assert out.count("\n") == text.count("\n")
        assert "two" not in out

    def test_unifies_line_endings(self):
        assert normalize("a;\r\nb;\rc;") == "a;\nb;\nc;"


class TestReentrancy:
    def test_call_then_state_write(self):
        text = (
            "function w() external {\n"
            '    (bool ok, ) = msg.sender.call{value: 1}("");\n'
            "    balances[msg.sender] = 0;\n"
            "}\n"
        )
        result = check_reentrancy(text)
        assert result.found
        assert result.line == 2
        assert "call" in result.excerpt

    def test_state_write_before_call_is_clean(self):
        text = (
            "function w() external {\n"
            "    balances[msg.sender] = 0;\n"
            '    (bool ok, ) = msg.sender.call{value: 1}("");\n'
            "    require(ok);\n"
            "}\n"
        )
        assert not check_reentrancy(text).found

    def test_write_in_other_function_is_clean(self):
        text = (
            "function a() external {\n"
            '    msg.sender.call("");\n'
            "}\n"
            "function b() external {\n"
            "    total = 0;\n"
            "}\n"
        )
        assert not check_reentrancy(text).found

    def test_comparison_is_not_a_write(self):
        text = 'function a() external { msg.sender.call(""); require(x == 1); }'
        assert not check_reentrancy(text).found

    def test_compound_assignment_counts(self):
        text = 'function a() external { to.call(""); total -= 1; }'
        assert check_reentrancy(text).found


class TestOverflow:
    def test_arithmetic_without_safemath(self):
        result = check_overflow("function f() public {\n    x = a + b;\n}")
        assert result.found
        assert result.line == 2

    def test_increment_operator(self):
        assert check_overflow("i++;").found

    def test_safemath_library_suppresses(self):
        text = "using SafeMath for uint256;\nx = a + b;"
        assert not check_overflow(text).found

    def test_operator_inside_string_ignored(self):
        assert not check_overflow('emit Log("a + b");').found

    def test_mapping_arrow_is_not_arithmetic(self):
        assert not check_overflow("mapping(address => uint256) balances;").found


class TestAccessControl:
    def test_public_function_without_guard(self):
        result = check_access_control("function setFee(uint256 f) public {\n}")
        assert result.found
        assert result.line == 1

    def test_only_owner_modifier(self):
        text = "function setFee(uint256 f) external onlyOwner {\n}"
        assert not check_access_control(text).found

    def test_require_owner(self):
        text = (
            "function setFee(uint256 f) public {\n"
            "    require(msg.sender == owner);\n"
            "}"
        )
        assert not check_access_control(text).found

    def test_internal_function_is_not_exposed(self):
        assert not check_access_control("function _fee() internal {\n}").found


class TestGas:
    def test_length_in_loop_condition(self):
        text = "for (uint i = 0; i < users.length; i++) {\n}"
        assert check_gas(text).found

    def test_indexing_in_loop_body(self):
        text = "for (uint i = 0; i < n; i++) { total = total + values[i]; }"
        assert check_gas(text).found

    def test_no_loop(self):
        assert not check_gas("x = values[0];").found


class TestTxOrigin:
    def test_equality_check(self):
        result = check_tx_origin("require(tx.origin == owner);")
        assert result.found

    def test_reversed_comparison(self):
        assert check_tx_origin("if (owner != tx.origin) revert();").found

    def test_plain_read_is_clean(self):
        assert not check_tx_origin("emit Caller(tx.origin);").found


class TestRegistry:
    def test_order(self):
        assert [c.id for c in CHECKS] == [
            "reentrancy",
            "overflow",
            "access",
            "gas",
            "origin",
            "market",
        ]

    def test_reentrancy_metadata(self):
        check = get_check("reentrancy")
        assert check.severity == Severity.HIGH
        assert check.risk_score == 9.2

    def test_unknown_check(self):
        with pytest.raises(KeyError):
            get_check("nope")

    def test_market_reference_is_never_a_finding(self):
        result = check_market_reference("anything")
        assert not result.found
        assert "awaiting market data" in result.details


class TestDetector:
    def test_reentrancy_only(self, vault_source):
        findings = Detector().detect(vault_source)
        assert [f.check_id for f in findings] == ["reentrancy"]
        finding = findings[0]
        assert finding.severity == Severity.HIGH
        assert finding.name == "Reentrancy Vulnerability"
        assert finding.location == "line 14"
        assert finding.id == "reentrancy-14"

    def test_clean_contract(self, registry_source):
        assert Detector().detect(registry_source) == []

    def test_findings_follow_registry_order(self, counter_source):
        findings = Detector().detect(counter_source)
        assert [f.check_id for f in findings] == ["overflow", "access", "origin"]
        assert findings[2].location == "line 12"

    def test_deterministic(self, counter_source):
        detector = Detector()
        assert detector.detect(counter_source) == detector.detect(counter_source)

    def test_commented_out_call_ignored(self, registry_source):
        text = registry_source + '\n// msg.sender.call(""); balance = 0;\n'
        assert Detector().detect(text) == []

    def test_empty_input_rejected(self):
        with pytest.raises(InvalidInputError):
            Detector().detect("   \n")

    def test_non_text_rejected(self):
        with pytest.raises(InvalidInputError):
            Detector().detect(None)

    def test_failing_check_treated_as_clean(self, vault_source):
        from contractscope.detector.checks import Check

        def broken(text):
            raise ValueError("boom")

        check = Check(
            id="broken",
            name="Broken",
            severity=Severity.LOW,
            description="",
            risk_score=0.0,
            predicate=broken,
        )
        detector = Detector(checks=[check, get_check("reentrancy")])
        assert [f.check_id for f in detector.detect(vault_source)] == ["reentrancy"]

    def test_iter_checks_yields_every_check(self, registry_source):
        verdicts = list(Detector().iter_checks(registry_source))
        assert len(verdicts) == len(CHECKS)
        assert not any(result.found for _, result in verdicts)


class TestScan:
    def test_scan_directory(self, tmp_path: Path, vault_source, registry_source):
        (tmp_path / "Vault.sol").write_text(vault_source)
        (tmp_path / "Registry.sol").write_text(registry_source)
        (tmp_path / "notes.md").write_text("x = a + b")
        result = Detector().scan(tmp_path)
        assert result.files_scanned == 2
        assert result.total_findings == 1
        assert list(result.findings) == [str(tmp_path.resolve() / "Vault.sol")]

    def test_vyper_files_included(self, tmp_path: Path):
        (tmp_path / "token.vy").write_text("@external\ndef mint(amount: uint256):\n    self.total += amount\n")
        result = Detector().scan(tmp_path)
        assert result.files_scanned == 1
        [findings] = result.findings.values()
        assert findings[0].check_id == "overflow"

    def test_skips_dependency_dirs(self, tmp_path: Path, vault_source):
        deps = tmp_path / "node_modules" / "lib"
        deps.mkdir(parents=True)
        (deps / "Vault.sol").write_text(vault_source)
        result = Detector().scan(tmp_path)
        assert result.files_scanned == 0

    def test_exclude_patterns(self, tmp_path: Path, vault_source):
        (tmp_path / "mocks").mkdir()
        (tmp_path / "mocks" / "Vault.sol").write_text(vault_source)
        result = Detector(exclude_patterns=["mocks"]).scan(tmp_path)
        assert result.files_scanned == 0

    def test_empty_files_skipped(self, tmp_path: Path):
        (tmp_path / "Empty.sol").write_text("\n")
        result = Detector().scan(tmp_path)
        assert result.files_scanned == 0
        assert result.files_skipped == 1
