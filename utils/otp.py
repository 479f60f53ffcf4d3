import random
from datetime import datetime, timedelta
import config


def generate_otp() -> str:
    return str(random.randint(100000, 999999))


def issue_email_otp(user, sender_func):
    """
    Store a fresh OTP on the user row and send it. The caller commits.
    """
    otp = generate_otp()
    user.email_otp = otp
    user.email_otp_expires = datetime.utcnow() + timedelta(seconds=config.OTP_TTL)
    sender_func(user.email, user.name, otp)
    return otp


def verify_email_otp(user, otp: str):
    """
    Returns (ok, message). On success the OTP is cleared and the email marked verified.
    """
    if user.is_email_verified:
        return False, "Email is already verified"
    if not user.email_otp or not user.email_otp_expires:
        return False, "No OTP found. Please request a new one."
    if datetime.utcnow() > user.email_otp_expires:
        return False, "OTP has expired. Please request a new one."
    if user.email_otp != otp:
        return False, "Invalid OTP. Please try again."
    user.is_email_verified = True
    user.email_otp = None
    user.email_otp_expires = None
    return True, "Email verified successfully! You can now log in."
