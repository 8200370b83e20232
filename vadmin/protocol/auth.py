"""S/PSK challenge/response helper."""

import hashlib


def compute_auth_response(challenge: str, secret: str) -> str:
    """
    Compute the argument of the ``auth`` command.

    The digest covers the challenge, a newline, the secret, the challenge
    again and a closing newline, hex-encoded in lowercase.
    """
    material = f"{challenge}\n{secret}{challenge}\n"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()
