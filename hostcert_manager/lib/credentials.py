"""Operator credentials used to authenticate request submissions."""

import getpass
import os
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from .cert_utils import deserialize_private_key, serialize_private_key
from .errors import CredentialError
from .logging_config import LOGGER


def load_user_key(
    userkey: Path,
    prompt: Callable[[str], str] = getpass.getpass,
) -> PrivateKeyTypes:
    """Load the operator's private key, asking for a pass phrase only if it is encrypted.

    Args:
        userkey: Path to the PEM private key
        prompt: Pass phrase prompt, getpass by default

    Returns:
        Decrypted private key

    Raises:
        CredentialError: If the key cannot be read or decrypted
    """
    try:
        key_pem = userkey.read_bytes()
    except OSError as e:
        raise CredentialError(f"cannot read user key {userkey}: {e}") from e

    try:
        return deserialize_private_key(key_pem)
    except TypeError:
        pass
    except ValueError as e:
        raise CredentialError(f"{userkey} is not a private key: {e}") from e

    passphrase = prompt(f"Enter pass phrase for {userkey}: ")
    try:
        return deserialize_private_key(key_pem, password=passphrase.encode())
    except (TypeError, ValueError) as e:
        raise CredentialError(f"cannot decrypt user key {userkey}: {e}") from e


@contextmanager
def client_credentials(
    usercert: Path,
    userkey: Path,
    prompt: Callable[[str], str] = getpass.getpass,
) -> Iterator[tuple[Path, Path]]:
    """Yield (certificate, decrypted key) paths for TLS client authentication.

    The decrypted key lives in a private temporary file that is removed when
    the context exits.

    Raises:
        CredentialError: If the certificate is missing or the key is unusable
    """
    if not usercert.is_file():
        raise CredentialError(f"user certificate not found: {usercert}")

    LOGGER.info("Reading private user key %s", userkey)
    key = load_user_key(userkey, prompt)

    fd, tmp_name = tempfile.mkstemp(prefix="hostcert-userkey-", suffix=".pem")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(serialize_private_key(key))
        yield usercert, tmp_path
    finally:
        tmp_path.unlink(missing_ok=True)
