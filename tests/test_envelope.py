#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import pytest

from Cryptodome.Cipher import AES

from authcrypt import (
    CipherParameters,
    Decrypted,
    AuthenticationFailed,
    MalformedInput,
    encrypt_with_keys,
    decrypt_with_keys,
    try_decrypt_with_keys,
    AuthCryptArgumentError,
    AuthCryptKeyError,
    AuthCryptAuthenticationError,
    AuthCryptMalformedInputError,
    AuthCryptDecryptionError,
  )

from conftest import reference_tag

# NIST SP 800-38A F.2.5 CBC-AES256 (first two blocks)
NIST_KEY = bytes.fromhex("603deb1015ca71be2b73aef0857d77811f352c073b6108d72d9810a30914dff4")
NIST_IV = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
NIST_PLAINTEXT = bytes.fromhex("6bc1bee22e409f96e93d7e117393172aae2d8a571e03ac9c9eb76fac45af8e51")
NIST_CIPHERTEXT = bytes.fromhex("f58c4c04d6e5f1ba779eabfb5f7bfbd69cfc4e967edb808d679f777bc6702c7d")


def test_known_answer_layout(auth_key):
  payload = b"SALT-ONESALT-TWO"
  envelope = encrypt_with_keys(NIST_PLAINTEXT, NIST_KEY, auth_key, non_secret_payload=payload, iv=NIST_IV)
  # 32 bytes of plaintext gain one full block of PKCS7 padding
  assert len(envelope) == 16 + 16 + 48 + 32
  assert envelope[0:8] == b"SALT-ONE"
  assert envelope[8:16] == b"SALT-TWO"
  assert envelope[16:32] == NIST_IV
  assert envelope[32:64] == NIST_CIPHERTEXT
  assert envelope[-32:] == reference_tag(auth_key, envelope[:-32])
  assert decrypt_with_keys(envelope, NIST_KEY, auth_key, non_secret_payload_length=16) == NIST_PLAINTEXT


def test_padding_is_pkcs7(crypt_key, auth_key, fixed_iv):
  envelope = encrypt_with_keys(b"abc", crypt_key, auth_key, iv=fixed_iv)
  ciphertext = envelope[16:-32]
  assert len(ciphertext) == 16
  padded = AES.new(crypt_key, AES.MODE_CBC, iv=fixed_iv).decrypt(ciphertext)
  assert padded == b"abc" + bytes([13]) * 13


def test_round_trip_without_payload(crypt_key, auth_key):
  data = bytes(range(256)) * 3
  envelope = encrypt_with_keys(data, crypt_key, auth_key)
  result = try_decrypt_with_keys(envelope, crypt_key, auth_key)
  assert result == Decrypted(data)
  assert result.ok
  assert result.unwrap() == data


def test_random_iv(crypt_key, auth_key):
  e1 = encrypt_with_keys(b"same", crypt_key, auth_key)
  e2 = encrypt_with_keys(b"same", crypt_key, auth_key)
  assert e1[:16] != e2[:16]
  assert e1 != e2


def test_payload_is_authenticated(crypt_key, auth_key):
  envelope = bytearray(encrypt_with_keys(b"data", crypt_key, auth_key, non_secret_payload=b"header"))
  envelope[0] ^= 0x01
  assert try_decrypt_with_keys(bytes(envelope), crypt_key, auth_key, non_secret_payload_length=6) == AuthenticationFailed()


def test_every_bit_flip_is_detected(crypt_key, auth_key):
  envelope = encrypt_with_keys(b"attack at dawn", crypt_key, auth_key)
  for i in range(len(envelope)):
    for bit in (0x01, 0x80):
      tampered = bytearray(envelope)
      tampered[i] ^= bit
      assert decrypt_with_keys(bytes(tampered), crypt_key, auth_key) == b''


def test_wrong_auth_key_fails(crypt_key, auth_key):
  envelope = encrypt_with_keys(b"data", crypt_key, auth_key)
  result = try_decrypt_with_keys(envelope, crypt_key, bytes(32))
  assert isinstance(result, AuthenticationFailed)
  assert not result.ok
  assert result.plaintext == b''
  with pytest.raises(AuthCryptAuthenticationError):
    result.unwrap()


def test_short_envelope_is_malformed(crypt_key, auth_key):
  result = try_decrypt_with_keys(b"\x00" * 47, crypt_key, auth_key)
  assert isinstance(result, MalformedInput)
  assert result.plaintext == b''
  with pytest.raises(AuthCryptMalformedInputError):
    result.unwrap()
  assert decrypt_with_keys(b"\x00" * 63, crypt_key, auth_key, non_secret_payload_length=16) == b''


def test_authenticated_bad_padding_is_malformed(crypt_key, auth_key, fixed_iv):
  # a block whose decryption ends in 0x00 is never valid PKCS7
  block = AES.new(crypt_key, AES.MODE_CBC, iv=fixed_iv).encrypt(b"\x41" * 15 + b"\x00")
  message = fixed_iv + block
  envelope = message + reference_tag(auth_key, message)
  result = try_decrypt_with_keys(envelope, crypt_key, auth_key)
  assert isinstance(result, MalformedInput)
  assert "padding" in result.reason


def test_authenticated_empty_ciphertext_is_malformed(crypt_key, auth_key, fixed_iv):
  envelope = fixed_iv + reference_tag(auth_key, fixed_iv)
  assert isinstance(try_decrypt_with_keys(envelope, crypt_key, auth_key), MalformedInput)


@pytest.mark.parametrize("bad_key", [None, b"", bytes(16), bytes(31), bytes(33)])
def test_key_length_validation(bad_key, crypt_key, auth_key):
  with pytest.raises(AuthCryptKeyError):
    encrypt_with_keys(b"data", bad_key, auth_key)
  with pytest.raises(AuthCryptKeyError):
    encrypt_with_keys(b"data", crypt_key, bad_key)
  with pytest.raises(AuthCryptKeyError):
    decrypt_with_keys(b"\x00" * 80, bad_key, auth_key)
  with pytest.raises(AuthCryptKeyError):
    decrypt_with_keys(b"\x00" * 80, crypt_key, bad_key)


def test_argument_validation(crypt_key, auth_key):
  with pytest.raises(AuthCryptArgumentError):
    encrypt_with_keys(b"", crypt_key, auth_key)
  with pytest.raises(AuthCryptArgumentError):
    encrypt_with_keys(None, crypt_key, auth_key)
  with pytest.raises(AuthCryptArgumentError):
    encrypt_with_keys(b"data", crypt_key, auth_key, iv=bytes(12))
  with pytest.raises(AuthCryptArgumentError):
    decrypt_with_keys(b"", crypt_key, auth_key)
  with pytest.raises(AuthCryptArgumentError):
    decrypt_with_keys(b"\x00" * 80, crypt_key, auth_key, non_secret_payload_length=-1)


def test_smaller_keys_with_parameters():
  params = CipherParameters(key_bits=128)
  k1, k2 = bytes(16), bytes(range(16))
  envelope = encrypt_with_keys(b"short keys", k1, k2, parameters=params)
  assert decrypt_with_keys(envelope, k1, k2, parameters=params) == b"short keys"
  with pytest.raises(AuthCryptKeyError):
    encrypt_with_keys(b"short keys", k1, k2)


def test_result_equality():
  assert Decrypted(b"x") == Decrypted(b"x")
  assert Decrypted(b"x") != Decrypted(b"y")
  assert AuthenticationFailed() == AuthenticationFailed()
  assert MalformedInput("a") == MalformedInput("b")
  assert AuthenticationFailed() != MalformedInput()
  assert issubclass(AuthCryptAuthenticationError, AuthCryptDecryptionError)
