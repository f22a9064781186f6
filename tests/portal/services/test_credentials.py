"""Tests for portal.services.credentials — access codes and temporary passwords."""
import re

import pytest

from portal.services.credentials import (
    generate_access_code, generate_temp_password, hash_password, verify_password,
)


class TestAccessCode:

    def test_format(self):
        assert re.fullmatch(r'[A-Z0-9]{8}', generate_access_code())

    def test_not_repeated(self):
        codes = {generate_access_code() for _ in range(200)}
        assert len(codes) == 200


class TestTempPassword:

    def test_default_length(self):
        assert len(generate_temp_password()) == 14

    def test_has_letter_digit_and_symbol(self):
        for _ in range(50):
            password = generate_temp_password(12)
            assert re.search(r'[A-Za-z]', password)
            assert re.search(r'[0-9]', password)
            assert re.search(r'[!@#$%*?]', password)

    def test_no_lookalike_characters(self):
        for _ in range(50):
            assert not set(generate_temp_password()) & set('0O1lI')

    def test_too_short_rejected(self):
        with pytest.raises(ValueError):
            generate_temp_password(8)


class TestHashing:

    def test_hash_is_not_plaintext(self):
        password = generate_temp_password()
        hashed = hash_password(password)
        assert password not in hashed

    def test_verify(self):
        hashed = hash_password('Correct-horse-9!')
        assert verify_password(hashed, 'Correct-horse-9!')
        assert not verify_password(hashed, 'wrong-password-9!')
