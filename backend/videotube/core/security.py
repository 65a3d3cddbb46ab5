# videotube/core/security.py
"""
Security primitives.
Handles password hashing and signing/verification of time-limited JWTs.
Which secret and lifetime apply to a token is decided by the caller
(see videotube.services.token_service).
"""
import uuid
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext

# Password hashing context
# Argon2 is a modern, secure password hashing algorithm
pwd_context = CryptContext(
    schemes=["argon2"],  # Use Argon2 for password hashing
    deprecated="auto",   # Automatically handle deprecated schemes
)

JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)

def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)

    Note: Only call this where a plaintext password enters the system.
    Passing an existing digest here would store a hash of a hash.
    """
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Verify a plain text password against a hashed password.

    Args:
        plain: Plain text password to verify
        hashed: Hashed password from database

    Returns:
        True if password matches, False otherwise (including a missing hash)
    """
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)

def sign_token(payload: dict, secret: str, ttl: dt.timedelta) -> str:
    """
    Sign a JWT that expires after `ttl`.

    Adds iat, exp and a random jti, so two tokens minted for the same
    claims within the same second are still distinct values.
    """
    now = dt.datetime.now(dt.timezone.utc)
    claims = {
        **payload,
        "iat": now,
        "exp": now + ttl,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, secret, algorithm=JWT_ALG)

def verify_token(token: str, secret: str) -> dict:
    """
    Decode and validate a JWT.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid, tampered or malformed
    """
    return jwt.decode(token, secret, algorithms=[JWT_ALG])
