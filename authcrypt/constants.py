#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants defined by this package"""

KEY_SIZE_BITS = 256
"""Size of the symmetric AES encryption key and the HMAC authentication key in bits"""

KEY_SIZE_BYTES = KEY_SIZE_BITS // 8
"""Size of the symmetric AES encryption key and the HMAC authentication key in bytes"""

BLOCK_SIZE_BITS = 128
"""AES block size in bits. The CBC initialization vector is one block long"""

BLOCK_SIZE_BYTES = BLOCK_SIZE_BITS // 8
"""AES block size in bytes. The CBC initialization vector is one block long"""

SALT_SIZE_BITS = 64
"""Size of each random PBKDF2 salt in bits"""

SALT_SIZE_BYTES = SALT_SIZE_BITS // 8
"""Size of each random PBKDF2 salt in bytes. An envelope carries two of them"""

TAG_SIZE_BYTES = 32
"""Size of the HMAC-SHA256 authentication tag appended to each envelope"""

PBKDF2_COUNT = 10000
"""Number of PBKDF2 iterations used to derive each key from the password"""

MIN_SALT_SIZE_BYTES = 8
"""Smallest salt accepted by key derivation"""

DEFAULT_RANDOM_LENGTH = 10
"""Default length of generated random byte sequences and strings"""

ALPHANUMERIC_CHARACTERS = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789"
  )
"""Default character set for random_alpha_string()"""

PASSWORD_ENV_VAR = "AUTHCRYPT_PASSWORD"
"""Environment variable consulted by the command-line tool when no password is given"""

CONFIG_ENV_VAR = "AUTHCRYPT_CONFIG"
"""Environment variable naming a YAML config file for the command-line tool"""
