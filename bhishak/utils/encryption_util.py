# /bhishak/utils/encryption_util.py
import re
from cryptography.fernet import Fernet, InvalidToken
from flask import current_app


class Encryptor:
    """
    Encrypts and decrypts sensitive identifiers (Aadhaar, UPI).
    It must be initialized with the Flask app to load the key.
    """
    def __init__(self, app=None):
        self.fernet = None
        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initializes the Fernet suite with the key from the app's config."""
        key = app.config.get('ENCRYPTION_KEY')
        if not key:
            raise ValueError("ENCRYPTION_KEY not set in the Flask application config.")

        self.fernet = Fernet(key.encode() if isinstance(key, str) else key)

    def encrypt(self, data: str) -> str:
        if self.fernet is None:
            raise RuntimeError("Encryptor has not been initialized with an app context.")

        if not isinstance(data, str):
            data = str(data)

        return self.fernet.encrypt(data.encode('utf-8')).decode('utf-8')

    def decrypt(self, token: str) -> str | None:
        if self.fernet is None:
            raise RuntimeError("Encryptor has not been initialized with an app context.")

        if not token:
            return None

        try:
            return self.fernet.decrypt(token.encode('utf-8')).decode('utf-8')
        except InvalidToken:
            current_app.logger.error("Decryption failed: Invalid token provided.")
            return None


def mask_data(data, visible_chars=4):
    """Masks all but the last `visible_chars` characters with X."""
    if not data:
        return ''
    data = str(data)
    if len(data) <= visible_chars:
        return data
    return 'X' * (len(data) - visible_chars) + data[-visible_chars:]


def mask_aadhaar(aadhaar):
    """XXXX-XXXX-1234 for a 12 digit Aadhaar number."""
    if not aadhaar:
        return ''
    cleaned = re.sub(r'\D', '', aadhaar)
    if len(cleaned) != 12:
        return mask_data(aadhaar, 4)
    return f"XXXX-XXXX-{cleaned[-4:]}"


def mask_phone(phone):
    if not phone:
        return ''
    return mask_data(re.sub(r'\D', '', phone), 4)


# Create a single, uninitialized instance to be imported by other modules.
encryptor = Encryptor()
