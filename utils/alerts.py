from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
import logging
import requests
from twilio.rest import Client
import config

logger = logging.getLogger(__name__)


def send_sms(phone: str, message: str):
    if config.TWILIO_SID and config.TWILIO_AUTH and config.TWILIO_PHONE:
        client = Client(config.TWILIO_SID, config.TWILIO_AUTH)
        client.messages.create(
            to=phone,
            from_=config.TWILIO_PHONE,
            body=message
        )
    else:
        logger.info(f"[MOCK SMS] to {phone}: {message}")


def send_email(to_email: str, subject: str, html_content: str):
    if not config.BREVO_API_KEY:
        logger.info(f"[MOCK EMAIL] to {to_email}: {subject}")
        return {"success": True, "messageId": None}

    payload = {
        "sender": {"name": config.EMAIL_SENDER_NAME, "email": config.EMAIL_FROM},
        "to": [{"email": to_email}],
        "subject": subject,
        "htmlContent": html_content,
    }
    headers = {"api-key": config.BREVO_API_KEY, "Content-Type": "application/json"}
    try:
        response = requests.post(config.BREVO_API_URL, json=payload, headers=headers,
                                 timeout=config.EMAIL_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"Email API error for {to_email}: {e}")
        raise RuntimeError(f"Email API failed: {e}") from e

    message_id = response.json().get("messageId")
    logger.info(f"Email sent to {to_email}, messageId: {message_id}")
    return {"success": True, "messageId": message_id}


def send_verification_email(email: str, name: str, otp: str):
    html = (
        f"<h2>Hello {name},</h2>"
        f"<p>Thank you for registering! Please use the following OTP to verify your email address:</p>"
        f"<h1 style=\"letter-spacing: 8px;\">{otp}</h1>"
        f"<p>This OTP is valid for <strong>{config.OTP_TTL // 60} minutes</strong>. Do not share it with anyone.</p>"
    )
    return send_email(email, "Email Verification - Women Safety", html)


def sos_message(user_name: str, user_phone: str, lat: float, lng: float) -> str:
    map_link = f"https://www.google.com/maps?q={lat},{lng}"
    return f"EMERGENCY: {user_name} ({user_phone}) triggered an SOS alert at {lat}, {lng}. {map_link}"


def send_sos_email(guardians, user_name: str, user_phone: str, lat: float, lng: float):
    """
    Email every guardian in parallel and wait for all sends.
    Raises RuntimeError if any send failed.
    """
    map_link = f"https://www.google.com/maps?q={lat},{lng}"
    html = (
        "<h1 style=\"color: #ff0000;\">EMERGENCY ALERT</h1>"
        f"<p><strong>{user_name}</strong> has triggered an emergency SOS alert. They may need immediate assistance.</p>"
        f"<p><strong>Name:</strong> {user_name}<br><strong>Phone:</strong> {user_phone}</p>"
        f"<p><strong>Latitude:</strong> {lat}<br><strong>Longitude:</strong> {lng}</p>"
        f"<p><a href=\"{map_link}\">VIEW LOCATION ON GOOGLE MAPS</a></p>"
        f"<p>Please contact {user_name} immediately or call emergency services if needed.</p>"
        f"<p>Timestamp: {datetime.utcnow().isoformat()}Z</p>"
    )

    recipients = [g.email for g in guardians]
    failures = []
    with ThreadPoolExecutor(max_workers=max(len(recipients), 1)) as pool:
        futures = {pool.submit(send_email, to, "SOS Alert - Women Safety", html): to for to in recipients}
        for future in as_completed(futures):
            try:
                future.result()
            except Exception as e:
                failures.append(f"{futures[future]}: {e}")

    if failures:
        raise RuntimeError(f"{len(failures)} of {len(recipients)} SOS emails failed: " + "; ".join(failures))

    logger.info(f"SOS email sent to {len(recipients)} guardians")
    return {"success": True, "message": "SOS alert sent to all guardians"}


def send_sos_sms(guardians, user_name: str, user_phone: str, lat: float, lng: float) -> int:
    """
    Best-effort SMS to every guardian; returns how many were sent.
    """
    body = sos_message(user_name, user_phone, lat, lng)
    sent = 0
    for g in guardians:
        try:
            send_sms(g.phone, body)
            sent += 1
        except Exception as e:
            logger.warning(f"SOS SMS to {g.phone} failed: {e}")
    return sent
