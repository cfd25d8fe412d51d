# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package authcrypt provides a command-line tool as well as a runtime API for password-based authenticated
encryption and decryption of strings and binary data (PBKDF2 key derivation, AES-256-CBC, HMAC-SHA256),
along with the random-data and hashing helpers it is built on.
"""

from .version import __version__

from .constants import (
    KEY_SIZE_BITS,
    KEY_SIZE_BYTES,
    BLOCK_SIZE_BITS,
    BLOCK_SIZE_BYTES,
    SALT_SIZE_BITS,
    SALT_SIZE_BYTES,
    TAG_SIZE_BYTES,
    PBKDF2_COUNT,
    ALPHANUMERIC_CHARACTERS,
  )

from .parameters import CipherParameters, DEFAULT_PARAMETERS

from .hashing import (
    HashMethod,
    to_hash,
    to_hash_string,
    unicode_to_hash_string,
    file_hash_string,
    to_hex_string,
  )

from .util import (
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

from .envelope import (
    DecryptResult,
    Decrypted,
    AuthenticationFailed,
    MalformedInput,
    encrypt_with_keys,
    decrypt_with_keys,
    try_decrypt_with_keys,
  )

from .passphrase_cipher import (
    PassphraseCipher,
    encrypt,
    decrypt,
    try_decrypt,
    encrypt_string,
    decrypt_string,
  )

from .internal_types import Jsonable
from .exceptions import (
    AuthCryptError,
    AuthCryptArgumentError,
    AuthCryptKeyError,
    AuthCryptParameterError,
    AuthCryptNoPasswordError,
    AuthCryptDecryptionError,
    AuthCryptAuthenticationError,
    AuthCryptMalformedInputError,
  )
