"""Tests for the shared format checks."""

import pytest

from prepwise_payments.errors import InvalidInput
from prepwise_payments.validation import is_valid_code, normalize_email, validate_code


@pytest.mark.parametrize("code", ["000000", "123456", "987654"])
def test_valid_codes(code):
    assert is_valid_code(code)
    assert validate_code(code) == code


@pytest.mark.parametrize("code", [None, "", "12345", "1234567", "12a456", " 12345", "١٢٣٤٥٦"])
def test_invalid_codes(code):
    assert not is_valid_code(code)
    with pytest.raises(InvalidInput):
        validate_code(code)


def test_code_length_is_configurable():
    assert is_valid_code("1234", length=4)
    assert not is_valid_code("123456", length=4)


def test_normalize_email():
    assert normalize_email("  Asha@Example.COM ") == "asha@example.com"
    for bad in (None, "", "asha", "asha@", "asha@example", "a sha@example.com"):
        with pytest.raises(InvalidInput):
            normalize_email(bad)
