#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""AES-CBC + HMAC-SHA256 authenticated envelopes built from pre-derived keys

An envelope has the layout:

    non_secret_payload || IV(16) || AES-CBC(PKCS7(plaintext)) || HMAC-SHA256(32)

where the HMAC tag covers every byte that precedes it, including the non-secret payload.
For password-based envelopes the non-secret payload is the two PBKDF2 salts.
"""

from typing import Optional

import logging

from Cryptodome.Cipher import AES
from Cryptodome.Hash import HMAC, SHA256
from Cryptodome.Random import get_random_bytes
from Cryptodome.Util.Padding import pad, unpad

from .exceptions import (
    AuthCryptArgumentError,
    AuthCryptKeyError,
    AuthCryptAuthenticationError,
    AuthCryptMalformedInputError,
  )
from .constants import TAG_SIZE_BYTES
from .parameters import CipherParameters, DEFAULT_PARAMETERS
from .util import constant_time_compare

logger = logging.getLogger(__name__)

class DecryptResult:
  """Outcome of decrypting an envelope. One of Decrypted, AuthenticationFailed or MalformedInput."""

  ok: bool = False
  """True iff the envelope authenticated and decrypted"""

  @property
  def plaintext(self) -> bytes:
    """The decrypted plaintext, or b'' for a failed result"""
    return b''

  def unwrap(self) -> bytes:
    """Return the plaintext, raising an AuthCryptDecryptionError subclass if decryption failed"""
    raise NotImplementedError()

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, DecryptResult):
      return NotImplemented
    return type(self) is type(other) and self.plaintext == other.plaintext

  def __hash__(self) -> int:
    return hash((type(self).__name__, self.plaintext))

class Decrypted(DecryptResult):
  """The envelope authenticated and was decrypted"""

  ok = True

  _plaintext: bytes

  def __init__(self, plaintext: bytes):
    self._plaintext = plaintext

  @property
  def plaintext(self) -> bytes:
    return self._plaintext

  def unwrap(self) -> bytes:
    return self._plaintext

  def __repr__(self) -> str:
    return f"Decrypted(<{len(self._plaintext)} bytes>)"

class AuthenticationFailed(DecryptResult):
  """The authentication tag did not match: wrong key/password, or the envelope was altered"""

  def unwrap(self) -> bytes:
    raise AuthCryptAuthenticationError("Envelope failed authentication; the password or key is wrong or the data was altered")

  def __repr__(self) -> str:
    return "AuthenticationFailed()"

class MalformedInput(DecryptResult):
  """The envelope is too short, or its authenticated content is not valid padded ciphertext"""

  _reason: str

  def __init__(self, reason: str='malformed envelope'):
    self._reason = reason

  @property
  def reason(self) -> str:
    return self._reason

  def unwrap(self) -> bytes:
    raise AuthCryptMalformedInputError(f"Envelope cannot be decrypted: {self._reason}")

  def __eq__(self, other: object) -> bool:
    # the reason is diagnostic only
    if not isinstance(other, DecryptResult):
      return NotImplemented
    return isinstance(other, MalformedInput)

  def __hash__(self) -> int:
    return hash('MalformedInput')

  def __repr__(self) -> str:
    return f"MalformedInput({self._reason!r})"

def _check_key(name: str, key: Optional[bytes], parameters: CipherParameters) -> None:
  if key is None or len(key) != parameters.key_size_bytes:
    actual = 'None' if key is None else f"{len(key)} bytes"
    raise AuthCryptKeyError(
        f"{name} must be {parameters.key_size_bytes} bytes ({parameters.key_bits} bits), got {actual}")

def compute_tag(auth_key: bytes, data: bytes) -> bytes:
  """Compute the HMAC-SHA256 authentication tag of data"""
  h = HMAC.new(bytes(auth_key), digestmod=SHA256)
  h.update(data)
  return h.digest()

def encrypt_with_keys(
      plain_data: bytes,
      crypt_key: bytes,
      auth_key: bytes,
      non_secret_payload: Optional[bytes]=None,
      iv: Optional[bytes]=None,
      parameters: Optional[CipherParameters]=None,
    ) -> bytes:
  """Encrypt and authenticate binary data with pre-derived keys.

  Args:
      plain_data (bytes):  The data to encrypt. Must not be empty.
      crypt_key (bytes):   The AES key; exactly parameters.key_size_bytes long.
      auth_key (bytes):    The HMAC key; exactly parameters.key_size_bytes long.
      non_secret_payload (Optional[bytes], optional):
                           Bytes that prefix the envelope in the clear and are covered by the
                           authentication tag. Defaults to None (no payload).
      iv (Optional[bytes], optional):
                           A specific initialization vector, exactly one block long. If None, a
                           random IV is generated; only known-answer tests should pass one.
                           Defaults to None.
      parameters (Optional[CipherParameters], optional):
                           Key and block sizes. Defaults to None (standard parameters).

  Raises:
      AuthCryptKeyError: crypt_key or auth_key has the wrong length
      AuthCryptArgumentError: plain_data is empty, or iv has the wrong length

  Returns:
      bytes: non_secret_payload || IV || ciphertext || tag
  """
  if parameters is None:
    parameters = DEFAULT_PARAMETERS
  _check_key("Encryption key", crypt_key, parameters)
  _check_key("Authentication key", auth_key, parameters)
  if plain_data is None or len(plain_data) == 0:
    raise AuthCryptArgumentError("Data to encrypt must be specified")
  if non_secret_payload is None:
    non_secret_payload = b''
  if iv is None:
    iv = get_random_bytes(parameters.block_size_bytes)
  elif len(iv) != parameters.block_size_bytes:
    raise AuthCryptArgumentError(f"IV must be {parameters.block_size_bytes} bytes, got {len(iv)}")

  cipher = AES.new(bytes(crypt_key), AES.MODE_CBC, iv=bytes(iv))
  ciphertext = cipher.encrypt(pad(bytes(plain_data), parameters.block_size_bytes, style='pkcs7'))

  message = bytes(non_secret_payload) + bytes(iv) + ciphertext
  tag = compute_tag(auth_key, message)
  assert len(tag) == TAG_SIZE_BYTES
  logger.debug("Encrypted %d bytes into a %d-byte envelope", len(plain_data), len(message) + len(tag))
  return message + tag

def try_decrypt_with_keys(
      envelope: bytes,
      crypt_key: bytes,
      auth_key: bytes,
      non_secret_payload_length: int=0,
      parameters: Optional[CipherParameters]=None,
    ) -> DecryptResult:
  """Authenticate and decrypt an envelope produced by encrypt_with_keys().

  The tag is verified with a constant-time comparison before any decryption is attempted.

  Args:
      envelope (bytes):    The envelope to decrypt. Must not be empty.
      crypt_key (bytes):   The AES key used for encryption.
      auth_key (bytes):    The HMAC key used for encryption.
      non_secret_payload_length (int, optional):
                           Length of the non-secret payload that prefixes the envelope. Defaults to 0.
      parameters (Optional[CipherParameters], optional):
                           Key and block sizes. Defaults to None (standard parameters).

  Raises:
      AuthCryptKeyError: crypt_key or auth_key has the wrong length
      AuthCryptArgumentError: envelope is empty

  Returns:
      DecryptResult: Decrypted(plaintext), AuthenticationFailed() or MalformedInput()
  """
  if parameters is None:
    parameters = DEFAULT_PARAMETERS
  _check_key("Encryption key", crypt_key, parameters)
  _check_key("Authentication key", auth_key, parameters)
  if envelope is None or len(envelope) == 0:
    raise AuthCryptArgumentError("Data to decrypt must be specified")
  if non_secret_payload_length < 0:
    raise AuthCryptArgumentError(f"Non-secret payload length must not be negative, got {non_secret_payload_length}")
  envelope = bytes(envelope)
  block_size = parameters.block_size_bytes

  if len(envelope) < TAG_SIZE_BYTES + non_secret_payload_length + block_size:
    logger.debug("Rejected %d-byte envelope: too short", len(envelope))
    return MalformedInput(f"envelope is {len(envelope)} bytes, shorter than payload, IV and tag")

  sent_tag = envelope[-TAG_SIZE_BYTES:]
  calc_tag = compute_tag(auth_key, envelope[:-TAG_SIZE_BYTES])
  if not constant_time_compare(sent_tag, calc_tag):
    logger.debug("Rejected %d-byte envelope: authentication tag mismatch", len(envelope))
    return AuthenticationFailed()

  iv = envelope[non_secret_payload_length:non_secret_payload_length + block_size]
  ciphertext = envelope[non_secret_payload_length + block_size:-TAG_SIZE_BYTES]
  if len(ciphertext) == 0 or len(ciphertext) % block_size != 0:
    return MalformedInput(f"ciphertext length {len(ciphertext)} is not a positive multiple of the block size")
  cipher = AES.new(bytes(crypt_key), AES.MODE_CBC, iv=iv)
  try:
    plain_data = unpad(cipher.decrypt(ciphertext), block_size, style='pkcs7')
  except ValueError:
    return MalformedInput("invalid PKCS7 padding")
  logger.debug("Decrypted %d-byte envelope into %d bytes", len(envelope), len(plain_data))
  return Decrypted(plain_data)

def decrypt_with_keys(
      envelope: bytes,
      crypt_key: bytes,
      auth_key: bytes,
      non_secret_payload_length: int=0,
      parameters: Optional[CipherParameters]=None,
    ) -> bytes:
  """Authenticate and decrypt an envelope, returning b'' if it is malformed or fails authentication.

  Callers must treat an empty result as a failure, never as a valid empty plaintext. Prefer
  try_decrypt_with_keys(), which distinguishes the cases.
  """
  return try_decrypt_with_keys(
      envelope,
      crypt_key,
      auth_key,
      non_secret_payload_length=non_secret_payload_length,
      parameters=parameters
    ).plaintext
