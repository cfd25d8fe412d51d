#!/usr/bin/env python3
#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Command-line interface for authcrypt package"""


from typing import Optional, Sequence, Union, TextIO, cast

import os
import sys
import argparse
import json
import logging
import yaml
from base64 import b64decode
import binascii
import colorama # type: ignore[import]
from colorama import Fore, Style
from pygments import highlight, lexers, formatters

# NOTE: this module runs with -m; do not use relative imports
from authcrypt import (
    PassphraseCipher,
    CipherParameters,
    HashMethod,
    Jsonable,
    AuthCryptError,
    AuthCryptArgumentError,
    AuthCryptNoPasswordError,
    to_hash_string,
    unicode_to_hash_string,
    file_hash_string,
    random_string,
    random_alpha_string,
    base64_encode,
    __version__ as pkg_version,
  )
from authcrypt.constants import PASSWORD_ENV_VAR, CONFIG_ENV_VAR, DEFAULT_RANDOM_LENGTH

logger = logging.getLogger(__name__)

def is_colorizable(stream: TextIO) -> bool:
  is_a_tty = hasattr(stream, 'isatty') and stream.isatty()
  return is_a_tty

class CmdExitError(RuntimeError):
  exit_code: int

  def __init__(self, exit_code: int, msg: Optional[str]=None):
    if msg is None:
      msg = f"Command exited with return code {exit_code}"
    super().__init__(msg)
    self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
  pass

class NoExitArgumentParser(argparse.ArgumentParser):
  def exit(self, status=0, message=None):
    if message:
      self._print_message(message, sys.stderr)
    raise ArgparseExitError(status, message)

class CommandHandler:
  _argv: Optional[Sequence[str]]
  _parser: argparse.ArgumentParser
  _args: argparse.Namespace
  _password: Optional[str] = None
  _colorize_stdout: bool = False
  _colorize_stderr: bool = False
  _compact: bool = False
  _raw: bool = False
  _encoding: str = 'utf-8'
  _output_file: Optional[str] = None
  _cipher: Optional[PassphraseCipher] = None
  _parameters: Optional[CipherParameters] = None

  def __init__(self, argv: Optional[Sequence[str]]=None):
    self._argv = argv

  def ecolor(self, codes: str) -> str:
    return codes if self._colorize_stderr else ""

  def pretty_print(
        self,
        any_value: Union[Jsonable, bytes],
        compact: Optional[bool]=None,
        colorize: Optional[bool]=None,
        raw: Optional[bool]=None,
      ):
    if raw is None:
      raw = self._raw
    raw = raw or isinstance(any_value, (bytes, bytearray))
    if raw:
      if isinstance(any_value, str):
        self.write_raw(any_value)
        return
      if isinstance(any_value, (bytes, bytearray)):
        self.write_raw(bytes(any_value))
        return
    value = cast(Jsonable, any_value)

    if compact is None:
      compact = self._compact
    if colorize is None:
      colorize = True

    def emit_to(f: TextIO):
      final_colorize = colorize and ((f is sys.stdout and self._colorize_stdout) or (f is sys.stderr and self._colorize_stderr))

      if compact:
        json_text = json.dumps(value, separators=(',', ':'), sort_keys=True)
      else:
        json_text = json.dumps(value, indent=2, sort_keys=True)
      if final_colorize:
        json_text = highlight(json_text, lexers.JsonLexer(), formatters.TerminalFormatter())  # pylint: disable=no-member
      else:
        json_text += '\n'
      f.write(json_text)

    output_file = self._output_file
    if output_file is None:
      emit_to(sys.stdout)
    else:
      with open(output_file, "w", encoding=self._encoding) as f:
        emit_to(f)

  def write_raw(self, value: Union[str, bytes]) -> None:
    output_file = self._output_file
    if isinstance(value, str):
      if output_file is None:
        sys.stdout.write(value)
      else:
        with open(output_file, 'w', encoding=self._encoding) as f:
          f.write(value)
      return
    if output_file is None:
      sys.stdout.flush()
      bin_stdout = getattr(sys.stdout, 'buffer', None)
      if bin_stdout is None:
        # stdout has been replaced with a text-only stream (e.g., under test capture)
        sys.stdout.write(value.decode(self._encoding, errors='replace'))
      else:
        bin_stdout.write(value)
        bin_stdout.flush()
    else:
      with open(output_file, 'wb') as f2:
        f2.write(value)

  def get_password(self) -> str:
    if self._password is None:
      password: str = self._args.password or ''
      if password == '':
        password = os.environ.get(PASSWORD_ENV_VAR, '')
        if password == '':
          raise AuthCryptNoPasswordError(f'A password must be provided with --password or in environment variable {PASSWORD_ENV_VAR}')
      self._password = password

    return self._password

  def get_parameters(self) -> CipherParameters:
    if self._parameters is None:
      config_file: Optional[str] = self._args.config_file
      if config_file is None:
        config_file = os.environ.get(CONFIG_ENV_VAR, '')
        if config_file == '':
          config_file = None
      parameters = CipherParameters()
      if not config_file is None:
        with open(config_file, encoding='utf-8') as f:
          config_obj = yaml.safe_load(f)
        if config_obj is None:
          config_obj = {}
        if not isinstance(config_obj, dict):
          raise AuthCryptError(f"Config file {config_file} must contain a YAML mapping")
        parameters = CipherParameters.from_dict(config_obj.get('parameters', None))
        logger.debug("Loaded %r from %s", parameters, config_file)
      iterations: Optional[int] = self._args.iterations
      if not iterations is None:
        parameters = parameters.replace(iterations=iterations)
      self._parameters = parameters
    return self._parameters

  def get_cipher(self) -> PassphraseCipher:
    if self._cipher is None:
      self._cipher = PassphraseCipher(self.get_password(), parameters=self.get_parameters())
    return self._cipher

  def read_input(self, value: Optional[str], what: str) -> bytes:
    args = self._args
    use_stdin: bool = args.use_stdin
    input_file: Optional[str] = args.input_file
    if use_stdin:
      if input_file is None:
        input_file = '/dev/stdin'
      else:
        raise AuthCryptArgumentError("Only one of --stdin and --input can be provided")
    if value is None:
      if input_file is None:
        raise AuthCryptArgumentError(f"One of {what} parameter, --stdin, or --input must be provided")
      with open(input_file, 'rb') as f:
        return f.read()
    if not input_file is None:
      raise AuthCryptArgumentError(f"Only one of {what} parameter, --stdin, and --input can be provided")
    return value.encode(self._encoding)

  def cmd_bare(self) -> int:
    print("A command is required", file=sys.stderr)
    return 1

  def cmd_encrypt(self) -> int:
    args = self._args
    plain_data = self.read_input(args.value, 'value')
    if args.base64:
      try:
        plain_data = b64decode(b''.join(plain_data.split()), validate=True)
      except binascii.Error as e:
        raise AuthCryptArgumentError("--base64 value is not valid base64") from e
    cipher = self.get_cipher()
    envelope = cipher.encrypt(plain_data)
    self.write_raw(base64_encode(envelope))
    return 0

  def cmd_decrypt(self) -> int:
    args = self._args
    cipher_text = ''.join(self.read_input(args.ciphertext, 'ciphertext').decode('ascii', errors='replace').split())
    if cipher_text == '':
      raise AuthCryptArgumentError("Ciphertext must not be empty")
    try:
      envelope = b64decode(cipher_text, validate=True)
    except binascii.Error as e:
      raise AuthCryptArgumentError("Ciphertext is not valid base64") from e
    cipher = self.get_cipher()
    plain_data = cipher.try_decrypt(envelope).unwrap()
    value: Union[bytes, Jsonable]
    if args.binary:
      value = plain_data
    else:
      value = plain_data.decode(self._encoding, errors='replace')
    self.pretty_print(value)
    return 0

  def cmd_hash(self) -> int:
    args = self._args
    hash_method = HashMethod.SHA512 if args.sha512 else HashMethod.SHA256
    max_length: int = args.max_length
    value: Optional[str] = args.value
    input_file: Optional[str] = args.input_file
    result: str
    if input_file is None:
      if value is None:
        raise AuthCryptArgumentError("One of value parameter or --input must be provided")
      if args.unicode:
        result = unicode_to_hash_string(value, hash_method=hash_method, maximum_length=max_length)
      else:
        result = to_hash_string(value, hash_method=hash_method, maximum_length=max_length)
    else:
      if not value is None:
        raise AuthCryptArgumentError("Only one of value parameter and --input can be provided")
      if args.unicode or max_length > 0:
        raise AuthCryptArgumentError("--unicode and --max-length cannot be used with --input")
      result = file_hash_string(input_file, hash_method=hash_method)
    self.pretty_print(result)
    return 0

  def cmd_random(self) -> int:
    args = self._args
    length: int = args.length
    charset: Optional[str] = args.charset
    result: str
    if args.hex and (args.alpha or not charset is None):
      raise AuthCryptArgumentError("Only one of --hex and --alpha/--charset can be provided")
    if args.alpha or not charset is None:
      result = random_alpha_string(length, character_set=charset)
    else:
      result = random_string(length)
    self.pretty_print(result)
    return 0

  def cmd_version(self) -> int:
    self.pretty_print(pkg_version)
    return 0

  def run(self) -> int:
    """Run the authcrypt command-line tool with provided arguments

    Args:
        argv (Optional[Sequence[str]], optional):
            A list of commandline arguments (NOT including the program as argv[0]!),
            or None to use sys.argv[1:]. Defaults to None.

    Returns:
        int: The exit code that would be returned if this were run as a standalone command.
    """
    parser = NoExitArgumentParser(prog='authcrypt', description="Encrypt and decrypt secrets with a password.")


    # ======================= Main command

    self._parser = parser
    parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                        help='Display detailed exception information')
    parser.add_argument('-M', '--monochrome', action='store_true', default=False,
                        help='Output to stdout/stderr in monochrome. Default is to colorize if stream is a compatible terminal')
    parser.add_argument('-c', '--compact', action='store_true', default=False,
                        help='Compact instead of pretty-printed output')
    parser.add_argument('-r', '--raw', action='store_true', default=False,
                        help='''Output raw strings and binary content directly, not json-encoded.''')
    parser.add_argument('-o', '--output', dest="output_file", default=None,
                        help='Write output value to the specified file instead of stdout')
    parser.add_argument('--text-encoding', default='utf-8',
                        help='The encoding used for text. Default  is utf-8')
    parser.add_argument('--log-level', default='warning',
                        choices=['debug', 'info', 'warning', 'error', 'critical'],
                        help='Logging level for diagnostic messages on stderr. Default is warning')
    parser.add_argument('-p', '--password', default=None,
                        help=f'''The password to be used for encryption/decryption. By default,
                                environment variable {PASSWORD_ENV_VAR} is used''')
    parser.add_argument('--config-file', '-C', default=None,
                        help=f'''A YAML document with a top-level "parameters" mapping that may set
                                "iterations", "key_bits", "block_bits" and "salt_bits". By default environment
                                variable {CONFIG_ENV_VAR} is used, and if that is not set the standard
                                parameters apply''')
    parser.add_argument('--iterations', '-n', type=int, default=None,
                        help='''The number of PBKDF2 iterations used to derive each key from the password.
                                Overrides the config file. The default is 10,000; envelopes can only be decrypted
                                with the iteration count they were encrypted with.''')
    parser.set_defaults(func=self.cmd_bare)

    subparsers = parser.add_subparsers(
                        title='Commands',
                        description='Valid commands',
                        help='Additional help available with "<command-name> -h"')


    # ======================= version

    parser_version = subparsers.add_parser('version',
                            description='''Display version information. JSON-quoted string. If a raw string is desired, use -r.''')
    parser_version.set_defaults(func=self.cmd_version)

    # ======================= encrypt

    parser_encrypt = subparsers.add_parser('encrypt', description="Encrypt a secret, writing a base64 envelope")
    parser_encrypt.add_argument('--base64', action='store_true', default=False,
                        help='The provided value is base64-encoded binary data that is decoded before encrypting.')
    parser_encrypt.add_argument('--stdin', dest="use_stdin", action='store_true', default=False,
                        help='Read the value from stdin instead of the commandline')
    parser_encrypt.add_argument('-i', '--input', dest="input_file", default=None,
                        help='Read the value from the specified file instead of the commandline')
    parser_encrypt.add_argument('value',
                        nargs='?',
                        default=None,
                        help="""The value to be encrypted. Omit this parameter if --input or --stdin is provided.""")
    parser_encrypt.set_defaults(func=self.cmd_encrypt)

    # ======================= decrypt

    parser_decrypt = subparsers.add_parser('decrypt', description="Get the plaintext value of a base64 envelope")
    parser_decrypt.add_argument('--binary', action='store_true', default=False,
                        help='Write the decrypted bytes as-is instead of decoding them as text.')
    parser_decrypt.add_argument('--stdin', dest="use_stdin", action='store_true', default=False,
                        help='Read the ciphertext from stdin instead of the commandline')
    parser_decrypt.add_argument('-i', '--input', dest="input_file", default=None,
                        help='Read the ciphertext from the specified file instead of the commandline')
    parser_decrypt.add_argument('ciphertext',
                        nargs='?',
                        default=None,
                        help="""The base64 envelope to be decrypted. Omit this parameter if --input or --stdin is provided.""")
    parser_decrypt.set_defaults(func=self.cmd_decrypt)

    # ======================= hash

    parser_hash = subparsers.add_parser('hash', description="Compute a hex-encoded SHA-2 hash of a string or a file")
    parser_hash.add_argument('--sha512', action='store_true', default=False,
                        help='Use SHA-512 instead of SHA-256')
    parser_hash.add_argument('--unicode', action='store_true', default=False,
                        help='Hash the UTF-16LE encoding of the value instead of its UTF-8 encoding')
    parser_hash.add_argument('--max-length', type=int, default=0,
                        help='Truncate the hash to at most this many bytes. Default is 0 (no truncation)')
    parser_hash.add_argument('-i', '--input', dest="input_file", default=None,
                        help='Hash the contents of the specified file instead of a value')
    parser_hash.add_argument('value',
                        nargs='?',
                        default=None,
                        help="""The string to be hashed. Omit this parameter if --input is provided.""")
    parser_hash.set_defaults(func=self.cmd_hash)

    # ======================= random

    parser_random = subparsers.add_parser('random', description="Generate a cryptographically random string")
    parser_random.add_argument('--length', '-l', type=int, default=DEFAULT_RANDOM_LENGTH,
                        help='''Number of random bytes (with --hex) or characters (with --alpha). Default is 10''')
    parser_random.add_argument('--hex', action='store_true', default=False,
                        help='Generate random bytes rendered as hex. This is the default')
    parser_random.add_argument('--alpha', action='store_true', default=False,
                        help='Generate random letters and digits')
    parser_random.add_argument('--charset', default=None,
                        help='Generate random characters drawn from this set. Implies --alpha')
    parser_random.set_defaults(func=self.cmd_random)

    # =========================================================

    try:
      args = parser.parse_args(self._argv)
    except ArgparseExitError as ex:
      return ex.exit_code
    traceback: bool = args.traceback
    try:
      self._args = args
      self._raw = args.raw
      self._compact = args.compact
      self._output_file = args.output_file
      self._encoding = args.text_encoding
      logging.basicConfig(
          level=getattr(logging, args.log_level.upper()),
          format='%(levelname)s %(name)s: %(message)s',
          stream=sys.stderr,
        )
      monochrome: bool = args.monochrome
      if not monochrome:
        self._colorize_stdout = is_colorizable(sys.stdout)
        self._colorize_stderr = is_colorizable(sys.stderr)
        if self._colorize_stdout or self._colorize_stderr:
          colorama.init(wrap=False)
          if self._colorize_stdout:
            new_stream = colorama.AnsiToWin32(sys.stdout)
            if new_stream.should_wrap():
              sys.stdout = new_stream
          if self._colorize_stderr:
            new_stream = colorama.AnsiToWin32(sys.stderr)
            if new_stream.should_wrap():
              sys.stderr = new_stream
      rc = args.func()
    except Exception as ex:
      if isinstance(ex, CmdExitError):
        rc = ex.exit_code
      else:
        rc = 1
      if rc != 0:
        if traceback:
          raise

        print(f"{self.ecolor(Fore.RED)}authcrypt: error: {ex}{self.ecolor(Style.RESET_ALL)}", file=sys.stderr)
    return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
  try:
    rc = CommandHandler(argv).run()
  except CmdExitError as ex:
    rc = ex.exit_code
  return rc

def main() -> None:
  """Console-script entry point"""
  sys.exit(run())

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
  main()
