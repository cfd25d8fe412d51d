#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Tunable parameters of the authenticated cipher"""

from typing import Any, Dict, Mapping, Optional

from .exceptions import AuthCryptParameterError
from .constants import (
    PBKDF2_COUNT,
    KEY_SIZE_BITS,
    BLOCK_SIZE_BITS,
    SALT_SIZE_BITS,
    MIN_SALT_SIZE_BYTES,
    TAG_SIZE_BYTES,
  )

VALID_KEY_SIZE_BITS = (128, 192, 256)
"""AES key sizes accepted by CipherParameters"""

class CipherParameters:
  """An immutable description of how keys are derived and data is enciphered.

  The defaults (10,000 PBKDF2 iterations, 256-bit keys, 128-bit blocks, 64-bit salts) produce
  the standard envelope layout:

      crypt_salt(8) || auth_salt(8) || IV(16) || ciphertext(N) || HMAC-SHA256(32)

  Changing any value produces envelopes that can only be decrypted with the same parameters.
  """

  _iterations: int
  _key_bits: int
  _block_bits: int
  _salt_bits: int

  def __init__(
        self,
        iterations: int=PBKDF2_COUNT,
        key_bits: int=KEY_SIZE_BITS,
        block_bits: int=BLOCK_SIZE_BITS,
        salt_bits: int=SALT_SIZE_BITS,
      ):
    """Create a validated set of cipher parameters.

    Args:
        iterations (int, optional): Number of PBKDF2 iterations per derived key. Defaults to 10000.
        key_bits (int, optional):   Size of each derived key in bits; one of 128, 192, 256. Defaults to 256.
        block_bits (int, optional): Cipher block size in bits. AES only supports 128. Defaults to 128.
        salt_bits (int, optional):  Size of each PBKDF2 salt in bits; a multiple of 8, at least 64.
                                    Defaults to 64.

    Raises:
        AuthCryptParameterError: One of the values is out of range
    """
    for name, value in (('iterations', iterations), ('key_bits', key_bits),
                        ('block_bits', block_bits), ('salt_bits', salt_bits)):
      if not isinstance(value, int) or isinstance(value, bool):
        raise AuthCryptParameterError(f"Cipher parameter {name} must be an integer, got {value!r}")
    if iterations < 1:
      raise AuthCryptParameterError(f"PBKDF2 iteration count must be positive, got {iterations}")
    if not key_bits in VALID_KEY_SIZE_BITS:
      raise AuthCryptParameterError(f"Key size must be one of {VALID_KEY_SIZE_BITS} bits, got {key_bits}")
    if block_bits != BLOCK_SIZE_BITS:
      raise AuthCryptParameterError(f"AES block size must be {BLOCK_SIZE_BITS} bits, got {block_bits}")
    if salt_bits % 8 != 0 or salt_bits < MIN_SALT_SIZE_BYTES * 8:
      raise AuthCryptParameterError(
          f"Salt size must be a multiple of 8 bits and at least {MIN_SALT_SIZE_BYTES * 8} bits, got {salt_bits}")
    self._iterations = iterations
    self._key_bits = key_bits
    self._block_bits = block_bits
    self._salt_bits = salt_bits

  @classmethod
  def from_dict(cls, values: Optional[Mapping[str, Any]]) -> 'CipherParameters':
    """Create parameters from a mapping, e.g., the "parameters" section of a YAML config file.

    Missing keys take their default values. Unknown keys are rejected so that typos do not
    silently produce incompatible envelopes.

    Raises:
        AuthCryptParameterError: The mapping has unknown keys or invalid values
    """
    if values is None:
      return cls()
    if not isinstance(values, Mapping):
      raise AuthCryptParameterError(f"Cipher parameters must be a mapping, got {type(values).__name__}")
    unknown = sorted(set(values.keys()) - {'iterations', 'key_bits', 'block_bits', 'salt_bits'}, key=str)
    if len(unknown) > 0:
      raise AuthCryptParameterError(f"Unknown cipher parameters: {', '.join(str(k) for k in unknown)}")
    return cls(**dict(values))

  def to_dict(self) -> Dict[str, int]:
    return dict(
        iterations=self._iterations,
        key_bits=self._key_bits,
        block_bits=self._block_bits,
        salt_bits=self._salt_bits,
      )

  def replace(self, **kwargs: int) -> 'CipherParameters':
    """Return a copy of these parameters with some values replaced"""
    values = self.to_dict()
    values.update(kwargs)
    return CipherParameters.from_dict(values)

  @property
  def iterations(self) -> int:
    """Number of PBKDF2 iterations per derived key"""
    return self._iterations

  @property
  def key_bits(self) -> int:
    return self._key_bits

  @property
  def block_bits(self) -> int:
    return self._block_bits

  @property
  def salt_bits(self) -> int:
    return self._salt_bits

  @property
  def key_size_bytes(self) -> int:
    return self._key_bits // 8

  @property
  def block_size_bytes(self) -> int:
    """Size of a cipher block, and of the IV, in bytes"""
    return self._block_bits // 8

  @property
  def salt_size_bytes(self) -> int:
    return self._salt_bits // 8

  @property
  def payload_size_bytes(self) -> int:
    """Size of the non-secret payload (both salts) that prefixes a password-based envelope"""
    return self.salt_size_bytes * 2

  @property
  def min_envelope_size_bytes(self) -> int:
    """Smallest envelope that can possibly authenticate: salts, IV and tag"""
    return TAG_SIZE_BYTES + self.payload_size_bytes + self.block_size_bytes

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, CipherParameters):
      return NotImplemented
    return self.to_dict() == other.to_dict()

  def __hash__(self) -> int:
    return hash((self._iterations, self._key_bits, self._block_bits, self._salt_bits))

  def __repr__(self) -> str:
    return (f"CipherParameters(iterations={self._iterations}, key_bits={self._key_bits}, "
            f"block_bits={self._block_bits}, salt_bits={self._salt_bits})")

DEFAULT_PARAMETERS = CipherParameters()
"""The standard parameters: 10000 iterations, 256-bit keys, 128-bit blocks, 64-bit salts"""
