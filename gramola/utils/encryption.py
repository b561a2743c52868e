#!/usr/bin/env python3
"""
Chiffrement symétrique (Fernet) des secrets Spotify stockés en base.

La clé provient de ENCRYPTION_KEY (clé Fernet brute) ou, à défaut, est dérivée
de SECRET_KEY par SHA-256. Sans clé, les valeurs sont stockées en clair.
"""
import os
import base64
import hashlib
import logging
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken

_PREFIX = "enc:"


def _get_fernet() -> Optional[Fernet]:
    key_env = os.getenv("ENCRYPTION_KEY") or os.getenv("SECRET_KEY")
    if not key_env:
        return None
    try:
        # Clé Fernet brute (base64 urlsafe, 32 octets)
        if len(key_env) >= 43:
            return Fernet(key_env.encode("utf-8"))
    except ValueError:
        pass
    digest = hashlib.sha256(key_env.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_str(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    f = _get_fernet()
    if not f:
        return value
    token = f.encrypt(value.encode("utf-8"))
    return _PREFIX + token.decode("utf-8")


def decrypt_str(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not value.startswith(_PREFIX):
        # Valeur non chiffrée
        return value
    f = _get_fernet()
    if not f:
        logging.warning("Secret chiffré en base mais aucune clé de chiffrement configurée")
        return value
    try:
        return f.decrypt(value[len(_PREFIX) :].encode("utf-8")).decode("utf-8")
    except InvalidToken:
        # Clé changée ou donnée corrompue: renvoyer brut pour éviter la perte
        logging.error("Impossible de déchiffrer un secret (clé modifiée ?)")
        return value
