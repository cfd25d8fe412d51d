#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""SHA-2 hashing of strings, binary data and files"""

from typing import Union, Iterable
from enum import Enum
from binascii import hexlify
import os

from Cryptodome.Hash import SHA256, SHA512

from .exceptions import AuthCryptArgumentError

FILE_CHUNK_SIZE = 64 * 1024
"""Number of bytes read at a time when hashing a file"""

class HashMethod(Enum):
  """Hashing algorithms available to the hash helpers"""

  SHA256 = 'sha256'
  """SHA2-256 (32-byte digest)"""

  SHA512 = 'sha512'
  """SHA2-512 (64-byte digest)"""

  def new(self):
    """Create a new, empty Cryptodome hash object for this algorithm"""
    if self is HashMethod.SHA512:
      return SHA512.new()
    return SHA256.new()

  @property
  def digest_size(self) -> int:
    return 64 if self is HashMethod.SHA512 else 32

def to_hex_string(data: Iterable[int]) -> str:
  """Convert binary data to a lowercase hex string"""
  return hexlify(bytes(data)).decode('ascii')

def to_hash(
      data: Union[str, bytes],
      hash_method: HashMethod=HashMethod.SHA256,
      maximum_length: int=0
    ) -> bytes:
  """Hash text or binary data.

  Args:
      data (Union[str, bytes]):  The data to hash. Strings are UTF-8 encoded first.
      hash_method (HashMethod, optional):
                                 The algorithm to use. Defaults to SHA256.
      maximum_length (int, optional):
                                 If greater than 0, the digest is truncated to at most this many
                                 bytes. Defaults to 0.

  Returns:
      bytes: The (possibly truncated) digest
  """
  if isinstance(data, str):
    data = data.encode('utf-8')
  assert isinstance(data, (bytes, bytearray, memoryview))
  h = hash_method.new()
  h.update(data)
  result = h.digest()
  if maximum_length > 0:
    result = result[:maximum_length]
  return result

def to_hash_string(
      data: Union[str, bytes],
      hash_method: HashMethod=HashMethod.SHA256,
      maximum_length: int=0
    ) -> str:
  """Hash text or binary data, returning the digest as a lowercase hex string. See to_hash()."""
  return to_hex_string(to_hash(data, hash_method=hash_method, maximum_length=maximum_length))

def unicode_to_hash_string(
      text: str,
      hash_method: HashMethod=HashMethod.SHA256,
      maximum_length: int=0
    ) -> str:
  """Hash the UTF-16LE encoding of a string, returning a lowercase hex string.

  This matches hashes produced by platforms whose native string encoding is UTF-16.
  """
  assert isinstance(text, str)
  return to_hash_string(text.encode('utf-16-le'), hash_method=hash_method, maximum_length=maximum_length)

def file_hash_string(
      path: Union[str, 'os.PathLike[str]'],
      hash_method: HashMethod=HashMethod.SHA256
    ) -> str:
  """Hash the contents of a file, returning a lowercase hex string.

  Raises:
      AuthCryptArgumentError: path is None
      OSError: The file cannot be read
  """
  if path is None:
    raise AuthCryptArgumentError("A file path is required")
  h = hash_method.new()
  with open(path, 'rb') as f:
    while True:
      chunk = f.read(FILE_CHUNK_SIZE)
      if not chunk:
        break
      h.update(chunk)
  return to_hex_string(h.digest())
