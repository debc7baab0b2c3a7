"""Per-user encryption for stored platform sessions."""

import base64
import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from autoapply.exceptions import ConfigurationError, SessionDecryptionError

KEY_INFO = b"autoapply-session-vault"


class SessionCipher:
    """Fernet encryption keyed per user.

    Each user's key is derived with HKDF-SHA256 from the server-side master
    secret, salted with the user id, so one user's ciphertext cannot be
    opened with another user's key.
    """

    def __init__(self, master_key: str | None) -> None:
        if not master_key:
            raise ConfigurationError("SESSION_VAULT_MASTER_KEY is not configured")
        self._master_key = master_key.encode()
        self._fernets: dict[str, Fernet] = {}

    def _fernet(self, user_id: str) -> Fernet:
        if not user_id:
            raise ValueError("user_id is required for session encryption")
        fernet = self._fernets.get(user_id)
        if fernet is None:
            key = HKDF(
                algorithm=hashes.SHA256(),
                length=32,
                salt=user_id.encode(),
                info=KEY_INFO,
            ).derive(self._master_key)
            fernet = Fernet(base64.urlsafe_b64encode(key))
            self._fernets[user_id] = fernet
        return fernet

    def encrypt(self, user_id: str, payload: dict[str, Any]) -> str:
        return self._fernet(user_id).encrypt(json.dumps(payload).encode()).decode()

    def decrypt(self, user_id: str, token: str) -> dict[str, Any]:
        """Decrypt a stored payload.

        Raises:
            SessionDecryptionError: If the token was not produced for this user
                with the current master key, or does not hold JSON
        """
        try:
            plaintext = self._fernet(user_id).decrypt(token.encode())
            return json.loads(plaintext)
        except (InvalidToken, ValueError) as e:
            raise SessionDecryptionError(f"Could not decrypt stored session: {e.__class__.__name__}") from e
