#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Shared fixtures and reference helpers for authcrypt tests"""

import hashlib
import hmac

import pytest

from authcrypt import PassphraseCipher

PASSWORD = "correct horse battery staple"

def reference_key_material(password: str) -> bytes:
  """Password normalization computed with hashlib, independent of the package"""
  return hashlib.sha256(password.encode('utf-8')).hexdigest().encode('utf-8')

def reference_derive_key(password: str, salt: bytes, iterations: int=10000) -> bytes:
  return hashlib.pbkdf2_hmac('sha1', reference_key_material(password), salt, iterations, dklen=32)

def reference_tag(auth_key: bytes, data: bytes) -> bytes:
  return hmac.new(auth_key, data, hashlib.sha256).digest()

@pytest.fixture
def password() -> str:
  return PASSWORD

@pytest.fixture
def cipher() -> PassphraseCipher:
  return PassphraseCipher(PASSWORD)

@pytest.fixture
def crypt_key() -> bytes:
  return bytes(range(32))

@pytest.fixture
def auth_key() -> bytes:
  return bytes(range(32, 64))

@pytest.fixture
def fixed_iv() -> bytes:
  return bytes.fromhex("000102030405060708090a0b0c0d0e0f")
