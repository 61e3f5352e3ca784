"""Admin password generation for throwaway database containers."""

import secrets
import string

from sqltestutil.errors import CredentialGenerationError

PASSWORD_LETTERS = string.ascii_lowercase + string.ascii_uppercase
PASSWORD_LENGTH = 32


def random_password(length: int = PASSWORD_LENGTH) -> str:
    """Return a password drawn uniformly from ASCII letters using the OS CSPRNG.

    Raises:
        CredentialGenerationError: If the secure random source fails.
    """
    chars = []
    for _ in range(length):
        try:
            chars.append(secrets.choice(PASSWORD_LETTERS))
        except (OSError, NotImplementedError) as e:
            raise CredentialGenerationError(f"Secure random source failed: {e}") from e
    return "".join(chars)
