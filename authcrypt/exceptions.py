#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class AuthCryptError(Exception):
  """Base class for all error exceptions defined by this package."""
  #pass

class AuthCryptArgumentError(AuthCryptError, ValueError):
  """Exception indicating that a caller passed an invalid argument (empty data, missing password, bad size)."""
  #pass

class AuthCryptKeyError(AuthCryptArgumentError):
  """Exception indicating that an encryption or authentication key has the wrong length."""
  #pass

class AuthCryptParameterError(AuthCryptArgumentError):
  """Exception indicating that a set of cipher parameters is invalid."""
  #pass

class AuthCryptNoPasswordError(AuthCryptError):
  """Exception indicating failure because a password was not provided."""
  #pass

class AuthCryptDecryptionError(AuthCryptError):
  """Exception indicating that an envelope could not be decrypted. Raised only when unwrapping a failed DecryptResult."""
  #pass

class AuthCryptAuthenticationError(AuthCryptDecryptionError):
  """Exception indicating that the envelope's authentication tag did not match (wrong password or tampered data)."""
  #pass

class AuthCryptMalformedInputError(AuthCryptDecryptionError):
  """Exception indicating that the envelope was too short or otherwise badly formed."""
  #pass
