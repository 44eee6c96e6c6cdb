"""
One-time login codes

A 4-digit code is mailed to the user; the client keeps "<hmac>.<expires>"
and sends it back with the code. Nothing is stored server side:

    hmac = HMAC-SHA256(SECRET_KEY, "<email>.<otp>.<expires>")   (hex)
    expires = epoch millis, 2 minutes after issue
"""
import hashlib
import hmac
import secrets
from typing import Optional, Tuple

from utils.datetime_utils import now_millis

OTP_DIGITS = 4
OTP_TTL_MS = 2 * 60 * 1000


class OtpError(ValueError):
    """Expired or invalid code"""


def generate_otp() -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(OTP_DIGITS))


def _digest(email: str, otp: str, expires: int, secret: str) -> str:
    data = f"{email}.{otp}.{expires}"
    return hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_otp(email: str, otp: str, secret: str, now: Optional[int] = None) -> Tuple[str, int]:
    """
    Returns:
        ("<hmac>.<expires>", expires)
    """
    expires = (now if now is not None else now_millis()) + OTP_TTL_MS
    return f"{_digest(email, otp, expires, secret)}.{expires}", expires


def check_otp(email: str, otp: str, signed: str, secret: str, now: Optional[int] = None) -> None:
    """
    Raises:
        OtpError: "OTP has expired" or "Invalid OTP"
    """
    digest, _, expires_part = signed.partition(".")
    try:
        expires = int(expires_part)
    except ValueError:
        raise OtpError("Invalid OTP")

    if (now if now is not None else now_millis()) > expires:
        raise OtpError("OTP has expired")

    if not hmac.compare_digest(_digest(email, otp, expires, secret), digest):
        raise OtpError("Invalid OTP")
