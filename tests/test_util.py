#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import base64
import hashlib
import string

import pytest

from authcrypt import (
    CipherParameters,
    ALPHANUMERIC_CHARACTERS,
    AuthCryptArgumentError,
    random_bytes,
    random_string,
    random_alpha_string,
    is_base64_string,
    base64_encode,
    base64_decode,
    password_key_material,
    derive_key,
    derive_key_from_password,
    constant_time_compare,
  )

from conftest import reference_key_material, reference_derive_key


def test_random_bytes():
  data = random_bytes(24)
  assert isinstance(data, bytes)
  assert len(data) == 24
  assert len(random_bytes()) == 10
  assert random_bytes(32) != random_bytes(32)


@pytest.mark.parametrize("length", [0, -1])
def test_random_bytes_rejects_non_positive_length(length):
  with pytest.raises(AuthCryptArgumentError):
    random_bytes(length)


def test_random_string_is_hex():
  s = random_string(16)
  assert len(s) == 32
  assert all(c in "0123456789abcdef" for c in s)
  assert len(random_string()) == 20


def test_random_alpha_string_default_charset():
  s = random_alpha_string(64)
  assert len(s) == 64
  assert all(c in ALPHANUMERIC_CHARACTERS for c in s)


def test_random_alpha_string_custom_charset():
  s = random_alpha_string(50, "xyzzy")
  assert len(s) == 50
  assert set(s) <= {'x', 'y', 'z'}
  assert random_alpha_string(20, ['Q']) == 'Q' * 20


def test_random_alpha_string_length_fallback():
  assert len(random_alpha_string(-3)) == 10
  assert random_alpha_string(0) == ''


def test_random_alpha_string_empty_charset():
  with pytest.raises(AuthCryptArgumentError):
    random_alpha_string(5, "")


@pytest.mark.parametrize("content, expected", [
    ("YWJj", True),
    ("  YWJjZA==  ", True),
    ("YWJjZA=", False),
    ("abc", False),
    ("ab-_", False),
    ("", False),
    (None, False),
    ("correct horse battery staple", False),
  ])
def test_is_base64_string(content, expected):
  assert is_base64_string(content) is expected


def test_base64_encode():
  assert base64_encode(b"abc") == "YWJj"
  assert base64_encode(None) == ""


def test_base64_decode_falls_back_to_utf8():
  assert base64_decode("YWJj") == b"abc"
  assert base64_decode("hello world") == b"hello world"
  assert base64_decode("ü") == "ü".encode('utf-8')


def test_base64_decode_undecodable_shape_falls_back_to_utf8():
  # "a===" matches the base64 shape but is not decodable
  assert is_base64_string("a===")
  assert base64_decode("a===") == b"a==="


def test_password_key_material_matches_reference():
  assert password_key_material("hunter2!") == reference_key_material("hunter2!")
  # 64 hex characters of SHA-256
  assert len(password_key_material("")) == 64


def test_password_key_material_decodes_base64_passwords():
  assert password_key_material("YWJj") == password_key_material("abc")
  assert password_key_material("YWJj") == hashlib.sha256(b"abc").hexdigest().encode('utf-8')
  raw = bytes(range(12))
  assert password_key_material(base64.b64encode(raw).decode('ascii')) == hashlib.sha256(raw).hexdigest().encode('utf-8')


def test_password_key_material_requires_string():
  with pytest.raises(AuthCryptArgumentError):
    password_key_material(None)
  with pytest.raises(AuthCryptArgumentError):
    password_key_material(b"bytes")


def test_derive_key_matches_pbkdf2_hmac_sha1():
  salt = bytes.fromhex("0102030405060708")
  key = derive_key_from_password("hunter2!", salt)
  assert len(key) == 32
  assert key == reference_derive_key("hunter2!", salt)


def test_derive_key_uses_parameters():
  salt = b"saltsalt"
  material = password_key_material("pw")
  key = derive_key(material, salt, parameters=CipherParameters(iterations=1000, key_bits=128))
  assert len(key) == 16
  assert key == hashlib.pbkdf2_hmac('sha1', material, salt, 1000, dklen=16)
  assert derive_key(material, salt) != derive_key(material, b"SALTSALT")


def test_derive_key_rejects_short_salt():
  with pytest.raises(AuthCryptArgumentError):
    derive_key(b"material", b"short")


def test_constant_time_compare():
  a = bytes(range(32))
  assert constant_time_compare(a, bytes(a))
  assert constant_time_compare(b"", b"")
  for i in range(len(a)):
    b = bytearray(a)
    b[i] ^= 0x80
    assert not constant_time_compare(a, b)
  assert not constant_time_compare(a, a[:-1])
