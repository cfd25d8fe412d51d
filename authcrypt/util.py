#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Random data, base64 and key-derivation helpers used by the authenticated cipher"""

from typing import Optional, Iterable, Union
from types import ModuleType

import re
import binascii
import logging
from base64 import b64encode, b64decode

from Cryptodome.Protocol.KDF import PBKDF2
from Cryptodome.Hash import SHA1
from Cryptodome.Random import get_random_bytes

from .exceptions import AuthCryptArgumentError
from .constants import (
    MIN_SALT_SIZE_BYTES,
    DEFAULT_RANDOM_LENGTH,
    ALPHANUMERIC_CHARACTERS,
  )
from .parameters import CipherParameters, DEFAULT_PARAMETERS
from .hashing import to_hash_string

logger = logging.getLogger(__name__)

PBKDF2_HASH_MODULE: ModuleType = SHA1
"""Type of hash used by PBKDF2 to derive keys from the password (RFC 2898 default)"""

_BASE64_RE = re.compile(r'^[a-zA-Z0-9\+/]*={0,3}$')

_MAX_RANDOM_ALPHA_LENGTH = 2**31 - 1

def random_bytes(length: int=DEFAULT_RANDOM_LENGTH) -> bytes:
  """Generate cryptographically random bytes.

  Args:
      length (int, optional): The number of bytes to generate. Default is 10.

  Raises:
      AuthCryptArgumentError: length is not positive

  Returns:
      bytes: length cryptographically random bytes
  """
  if length <= 0:
    raise AuthCryptArgumentError(f"Random byte length must be greater than 0, got {length}")
  return get_random_bytes(length)

def random_string(length: int=DEFAULT_RANDOM_LENGTH) -> str:
  """Generate length random bytes and return them as a lowercase hex string (2*length characters)"""
  return binascii.hexlify(random_bytes(length)).decode('ascii')

def random_alpha_string(length: int, character_set: Optional[Iterable[str]]=None) -> str:
  """Generate a random string drawn from a set of characters.

  Args:
      length (int):   The number of characters to generate. A negative (or absurdly large)
                      length falls back to 10.
      character_set (Optional[Iterable[str]], optional):
                      The characters to choose from. Duplicates are ignored. If None,
                      ASCII letters and digits are used. Defaults to None.

  Raises:
      AuthCryptArgumentError: The character set is empty

  Returns:
      str: A string of length random characters
  """
  if length < 0 or length >= _MAX_RANDOM_ALPHA_LENGTH:
    length = DEFAULT_RANDOM_LENGTH
  if character_set is None:
    character_set = ALPHANUMERIC_CHARACTERS
  characters = list(dict.fromkeys(character_set))
  if len(characters) == 0:
    raise AuthCryptArgumentError("Character set for random string must not be empty")
  if length == 0:
    return ''
  data = get_random_bytes(length * 8)
  result = []
  for i in range(length):
    value = int.from_bytes(data[i*8:i*8+8], 'little')
    result.append(characters[value % len(characters)])
  return ''.join(result)

def is_base64_string(content: Optional[str]) -> bool:
  """Determine whether a string looks like base64-encoded data.

  The content is trimmed; it must then be a multiple of 4 characters long, drawn from the
  standard base64 alphabet with at most three trailing '=' characters.
  """
  if content is None or content == '':
    return False
  content = content.strip()
  return len(content) % 4 == 0 and not _BASE64_RE.match(content) is None

def base64_encode(content: Optional[bytes]) -> str:
  """Base64-encode binary data. None encodes to an empty string."""
  if content is None:
    return ''
  return b64encode(content).decode('ascii')

def base64_decode(content: str) -> bytes:
  """Decode a string that may or may not be base64.

  If content looks like base64 (see is_base64_string()) it is decoded; otherwise its UTF-8 encoding
  is returned. Content that passes the base64 shape test but cannot be decoded (e.g., "a===") also
  falls back to its UTF-8 encoding instead of raising, unlike strict base64 decoders.
  """
  assert isinstance(content, str)
  if is_base64_string(content):
    try:
      return b64decode(content.strip())
    except binascii.Error:
      pass
  return content.encode('utf-8')

def password_key_material(password: str) -> bytes:
  """Normalize a password of any length into the fixed-size input for PBKDF2.

  The password is passed through base64_decode(), hashed with SHA-256, and the lowercase
  hex digest is UTF-8 encoded. This is a normalization step, not a substitute for PBKDF2
  salting.

  Raises:
      AuthCryptArgumentError: password is None
  """
  if password is None:
    raise AuthCryptArgumentError("A password is required")
  if not isinstance(password, str):
    raise AuthCryptArgumentError(f"Password must be a string, got {type(password).__name__}")
  return to_hash_string(base64_decode(password)).encode('utf-8')

def derive_key(
      key_material: bytes,
      salt: bytes,
      parameters: Optional[CipherParameters]=None,
      hmac_hash_module: ModuleType=PBKDF2_HASH_MODULE
    ) -> bytes:
  """Derive a deterministic key from password key material and a salt with PBKDF2.

  Args:
      key_material (bytes): Normalized password bytes, as returned by password_key_material().
      salt (bytes):         A salt, at least 8 bytes long. Not secret, but must be preserved to
                            regenerate the same key during decryption.
      parameters (Optional[CipherParameters], optional):
                            Iteration count and key size. If None, the defaults (10000 iterations,
                            32-byte key) are used. Defaults to None.
      hmac_hash_module (ModuleType, optional):
                            The PRF hash for PBKDF2. Default is SHA1.

  Raises:
      AuthCryptArgumentError: The salt is too short

  Returns:
      bytes: A key of parameters.key_size_bytes bytes
  """
  assert isinstance(key_material, bytes)
  if parameters is None:
    parameters = DEFAULT_PARAMETERS
  if salt is None or len(salt) < MIN_SALT_SIZE_BYTES:
    raise AuthCryptArgumentError(f"Salt must be at least {MIN_SALT_SIZE_BYTES} bytes in length")
  key = PBKDF2(
      key_material,
      bytes(salt),
      dkLen=parameters.key_size_bytes,
      count=parameters.iterations,
      hmac_hash_module=hmac_hash_module
    )
  return key

def derive_key_from_password(
      password: str,
      salt: bytes,
      parameters: Optional[CipherParameters]=None
    ) -> bytes:
  """Normalize a password and derive a key from it with PBKDF2. See derive_key()."""
  return derive_key(password_key_material(password), salt, parameters=parameters)

def constant_time_compare(a: Union[bytes, bytearray], b: Union[bytes, bytearray]) -> bool:
  """Compare two byte strings in time that does not depend on where they first differ.

  Every byte pair is XORed and accumulated; the loop always runs over the full length.
  Sequences of different lengths compare unequal.
  """
  if len(a) != len(b):
    return False
  compare = 0
  for x, y in zip(a, b):
    compare |= x ^ y
  return compare == 0
