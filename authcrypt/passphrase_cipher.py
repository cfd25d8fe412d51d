#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Password-based authenticated encryption/decryption"""

from typing import Optional, Tuple

import binascii
import logging
from base64 import b64encode, b64decode

from Cryptodome.Random import get_random_bytes

from .exceptions import AuthCryptArgumentError
from .parameters import CipherParameters, DEFAULT_PARAMETERS
from .util import password_key_material, derive_key
from .envelope import (
    DecryptResult,
    MalformedInput,
    encrypt_with_keys,
    try_decrypt_with_keys,
  )

logger = logging.getLogger(__name__)

class PassphraseCipher:
  """An authenticated encrypter/decrypter driven by a password

  Each call to encrypt() derives two independent 256-bit keys from the password with PBKDF2
  (HMAC-SHA1, 10,000 iterations), each with its own fresh 8-byte random salt: one key for
  AES-256-CBC encryption and one for the HMAC-SHA256 authentication tag. The result is an
  envelope of the form:

      crypt_salt(8) || auth_salt(8) || IV(16) || AES-CBC(PKCS7(plaintext)) || HMAC-SHA256(32)

  The tag covers the salts, IV and ciphertext. decrypt() re-derives both keys from the embedded
  salts, verifies the tag in constant time, and only then decrypts.

  Before PBKDF2, the password is normalized: if it looks like base64 it is decoded, otherwise it
  is UTF-8 encoded; the bytes are hashed with SHA-256 and the hex digest becomes the PBKDF2 input.
  Note that a password such as "abcd" therefore counts as base64.

  The object holds no mutable state beyond its configuration, so one instance may be shared
  between threads.
  """

  _key_material: bytes
  """Normalized password bytes fed to PBKDF2"""

  _parameters: CipherParameters

  def __init__(self, password: str, parameters: Optional[CipherParameters]=None):
    """Create a password-based encrypter/decrypter.

    Args:
        password (str):       The password to be used for encryption/decryption. May be empty
                              but not None.
        parameters (Optional[CipherParameters], optional):
                              PBKDF2 iteration count and key/block/salt sizes. If None, the
                              standard parameters are used. Defaults to None.

    Raises:
        AuthCryptArgumentError: password is None or not a string
    """
    if parameters is None:
      parameters = DEFAULT_PARAMETERS
    self._key_material = password_key_material(password)
    self._parameters = parameters

  @property
  def parameters(self) -> CipherParameters:
    """The cipher parameters used by this object"""
    return self._parameters

  def derive_keys(self, crypt_salt: bytes, auth_salt: bytes) -> Tuple[bytes, bytes]:
    """Derive the (crypt_key, auth_key) pair for a pair of salts"""
    crypt_key = derive_key(self._key_material, crypt_salt, parameters=self._parameters)
    auth_key = derive_key(self._key_material, auth_salt, parameters=self._parameters)
    return crypt_key, auth_key

  def encrypt(self, plain_data: bytes) -> bytes:
    """Encrypt binary data into an authenticated envelope.

    Args:
        plain_data (bytes): The data to encrypt. Must not be empty.

    Raises:
        AuthCryptArgumentError: plain_data is empty

    Returns:
        bytes: crypt_salt || auth_salt || IV || ciphertext || tag
    """
    if plain_data is None or len(plain_data) == 0:
      raise AuthCryptArgumentError("Data to encrypt must be specified")
    salt_size = self._parameters.salt_size_bytes
    crypt_salt = get_random_bytes(salt_size)
    auth_salt = get_random_bytes(salt_size)
    crypt_key, auth_key = self.derive_keys(crypt_salt, auth_salt)
    return encrypt_with_keys(
        plain_data,
        crypt_key,
        auth_key,
        non_secret_payload=crypt_salt + auth_salt,
        parameters=self._parameters
      )

  def try_decrypt(self, envelope: bytes) -> DecryptResult:
    """Authenticate and decrypt an envelope produced by encrypt().

    Args:
        envelope (bytes): The envelope. Must not be empty.

    Raises:
        AuthCryptArgumentError: envelope is empty

    Returns:
        DecryptResult: Decrypted(plaintext), AuthenticationFailed() or MalformedInput()
    """
    if envelope is None or len(envelope) == 0:
      raise AuthCryptArgumentError("Data to decrypt must be specified")
    envelope = bytes(envelope)
    if len(envelope) < self._parameters.min_envelope_size_bytes:
      logger.debug("Rejected %d-byte envelope: too short", len(envelope))
      return MalformedInput(f"envelope is {len(envelope)} bytes, shorter than salts, IV and tag")
    salt_size = self._parameters.salt_size_bytes
    crypt_salt = envelope[:salt_size]
    auth_salt = envelope[salt_size:salt_size * 2]
    crypt_key, auth_key = self.derive_keys(crypt_salt, auth_salt)
    return try_decrypt_with_keys(
        envelope,
        crypt_key,
        auth_key,
        non_secret_payload_length=self._parameters.payload_size_bytes,
        parameters=self._parameters
      )

  def decrypt(self, envelope: bytes) -> bytes:
    """Authenticate and decrypt an envelope, returning b'' on any authentication or format failure.

    An empty result always means failure; encrypt() never accepts empty plaintext. Use try_decrypt()
    to tell a wrong password from a malformed envelope.

    Raises:
        AuthCryptArgumentError: envelope is empty
    """
    return self.try_decrypt(envelope).plaintext

  def encrypt_string(self, plain_text: str) -> str:
    """Encrypt a string, returning the base64-encoded envelope of its UTF-8 encoding.

    An empty plain_text yields an empty string.
    """
    if plain_text is None or plain_text == '':
      return ''
    return b64encode(self.encrypt(plain_text.encode('utf-8'))).decode('ascii')

  def decrypt_string(self, cipher_text: str, base64_encoded: bool=True) -> str:
    """Decrypt a string produced by encrypt_string().

    Args:
        cipher_text (str):    The encrypted text.
        base64_encoded (bool, optional):
                              If True, cipher_text is base64 and is decoded first, ignoring
                              any whitespace (including line breaks); otherwise its UTF-8
                              encoding is used as the envelope. Defaults to True.

    Raises:
        AuthCryptArgumentError: cipher_text is blank or is not valid base64

    Returns:
        str: The decrypted text, or '' if the envelope failed authentication
    """
    if cipher_text is None or cipher_text.strip() == '':
      raise AuthCryptArgumentError("Data to decrypt must be specified")
    if base64_encoded:
      try:
        # wrapped base64 (e.g., 76-column lines) carries embedded newlines
        envelope = b64decode(''.join(cipher_text.split()), validate=True)
      except binascii.Error as e:
        raise AuthCryptArgumentError("Encrypted text is not valid base64") from e
    else:
      envelope = cipher_text.encode('utf-8')
    return self.decrypt(envelope).decode('utf-8', errors='replace')

def encrypt(plain_data: bytes, password: str, parameters: Optional[CipherParameters]=None) -> bytes:
  """Encrypt binary data with a password. See PassphraseCipher.encrypt()."""
  return PassphraseCipher(password, parameters=parameters).encrypt(plain_data)

def decrypt(envelope: bytes, password: str, parameters: Optional[CipherParameters]=None) -> bytes:
  """Decrypt an envelope with a password, returning b'' on failure. See PassphraseCipher.decrypt()."""
  return PassphraseCipher(password, parameters=parameters).decrypt(envelope)

def try_decrypt(envelope: bytes, password: str, parameters: Optional[CipherParameters]=None) -> DecryptResult:
  """Decrypt an envelope with a password, returning an explicit result. See PassphraseCipher.try_decrypt()."""
  return PassphraseCipher(password, parameters=parameters).try_decrypt(envelope)

def encrypt_string(plain_text: str, password: str, parameters: Optional[CipherParameters]=None) -> str:
  """Encrypt a string with a password into base64 text. See PassphraseCipher.encrypt_string()."""
  return PassphraseCipher(password, parameters=parameters).encrypt_string(plain_text)

def decrypt_string(
      cipher_text: str,
      password: str,
      base64_encoded: bool=True,
      parameters: Optional[CipherParameters]=None
    ) -> str:
  """Decrypt text produced by encrypt_string(). See PassphraseCipher.decrypt_string()."""
  return PassphraseCipher(password, parameters=parameters).decrypt_string(cipher_text, base64_encoded=base64_encoded)
