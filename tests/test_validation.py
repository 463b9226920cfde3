"""Tests for request checks and format validators."""

import math

from gateway.engine.validation import (
    check_bank_details,
    check_deposit,
    check_transfer,
    validate_account_number,
    validate_email,
    validate_ifsc,
    validate_phone,
)

MAX = 200_000.0
BENE = {"beneId": "BENE0001"}


class TestCheckTransfer:
    def test_valid_transfer(self):
        result = check_transfer("T1", 500.0, BENE, MAX)
        assert result.ok is True

    def test_amount_at_ceiling_is_allowed(self):
        assert check_transfer("T1", MAX, BENE, MAX).ok


class TestTransferRejections:
    def test_missing_transfer_id(self):
        result = check_transfer(None, 500.0, BENE, MAX)
        assert not result.ok
        assert "Missing required fields" in result.message

    def test_empty_transfer_id(self):
        assert not check_transfer("", 500.0, BENE, MAX).ok

    def test_missing_amount(self):
        assert not check_transfer("T1", None, BENE, MAX).ok

    def test_missing_bene_details(self):
        assert not check_transfer("T1", 500.0, None, MAX).ok

    def test_zero_amount(self):
        result = check_transfer("T1", 0, BENE, MAX)
        assert not result.ok
        assert result.message == "Amount must be greater than 0"

    def test_negative_amount(self):
        assert not check_transfer("T1", -10.0, BENE, MAX).ok

    def test_amount_over_ceiling(self):
        result = check_transfer("T1", MAX + 0.01, BENE, MAX)
        assert not result.ok
        assert "maximum limit" in result.message

    def test_nan_amount(self):
        result = check_transfer("T1", math.nan, BENE, MAX)
        assert not result.ok
        assert result.message == "Amount must be greater than 0"

    def test_infinite_amount(self):
        assert "maximum limit" in check_transfer("T1", math.inf, BENE, MAX).message
        assert not check_transfer("T1", -math.inf, BENE, MAX).ok


class TestPriorityOrder:
    def test_missing_fields_checked_before_amount(self):
        result = check_transfer(None, -5.0, BENE, MAX)
        assert "Missing required fields" in result.message


class TestDeposit:
    def test_valid_deposit(self):
        assert check_deposit(1000.0, 50_000.0).ok

    def test_missing_or_non_positive(self):
        assert not check_deposit(None, 50_000.0).ok
        assert not check_deposit(0, 50_000.0).ok
        assert not check_deposit(-1, 50_000.0).ok
        assert not check_deposit(math.nan, 50_000.0).ok

    def test_over_limit(self):
        result = check_deposit(50_000.01, 50_000.0)
        assert not result.ok
        assert "cannot exceed" in result.message


class TestFormats:
    def test_ifsc(self):
        assert validate_ifsc("HDFC0000123")
        assert validate_ifsc("SBIN0ABC123")
        assert not validate_ifsc("hdfc0000123")
        assert not validate_ifsc("HDFC1000123")
        assert not validate_ifsc("HDFC000012")

    def test_account_number_length_bounds(self):
        assert validate_account_number("123456789")
        assert validate_account_number("1" * 18)
        assert not validate_account_number("12345678")
        assert not validate_account_number("1" * 19)
        assert not validate_account_number("12345678a")

    def test_email(self):
        assert validate_email("user@example.com")
        assert not validate_email("user@example")
        assert not validate_email("user example.com")

    def test_phone(self):
        assert validate_phone("9876543210")
        assert not validate_phone("5876543210")
        assert not validate_phone("987654321")

    def test_bank_details(self):
        assert check_bank_details("123456789", "HDFC0000123").ok
        assert check_bank_details("123456789", "hdfc0000123").message == "Invalid IFSC code format"
        assert check_bank_details("1234", "HDFC0000123").message == "Invalid account number format"
