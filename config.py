import os
from dotenv import load_dotenv
import urllib.parse

# Load .env file
load_dotenv()

# Database settings
DB_USER = os.getenv("DB_USER", "root")
DB_PASS = os.getenv("DB_PASS", "")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_NAME = os.getenv("DB_NAME", "safety_alerts")

# URL-encode the password
DB_PASS_ENCODED = urllib.parse.quote(DB_PASS)

# DATABASE_URL wins when set (sqlite:// for local runs and tests)
SQLALCHEMY_DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"mysql+mysqlconnector://{DB_USER}:{DB_PASS_ENCODED}@{DB_HOST}/{DB_NAME}",
)

# CORS
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001").split(",")
    if o.strip()
]
FRONTEND_URL = os.getenv("FRONTEND_URL", "")
if FRONTEND_URL and FRONTEND_URL not in CORS_ORIGINS:
    CORS_ORIGINS.append(FRONTEND_URL)

PORT = int(os.getenv("PORT", "8000"))

# Email (Brevo transactional API)
BREVO_API_KEY = os.getenv("BREVO_API_KEY", "")
BREVO_API_URL = os.getenv("BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
EMAIL_FROM = os.getenv("EMAIL_FROM", "alerts@safety.local")
EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Women Safety System")
EMAIL_TIMEOUT_SECONDS = int(os.getenv("EMAIL_TIMEOUT_SECONDS", "30"))

# Twilio settings
TWILIO_SID = os.getenv("TWILIO_SID", "")
TWILIO_AUTH = os.getenv("TWILIO_AUTH", "")
TWILIO_PHONE = os.getenv("TWILIO_PHONE", "")

# JWT settings
JWT_SECRET = os.getenv("JWT_SECRET", "supersecretjwtkey")
JWT_ALGORITHM = "HS256"
JWT_EXP_MINUTES = int(os.getenv("JWT_EXP_MINUTES", "43200"))

# OTP settings
OTP_TTL = int(os.getenv("OTP_TTL_SECONDS", "600"))

# Admin seed
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@womensafety.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
ADMIN_NAME = os.getenv("ADMIN_NAME", "System Admin")

# Dispatch settings
STATION_SEARCH_RADIUS_M = float(os.getenv("STATION_SEARCH_RADIUS_M", "50000"))
NEARBY_STATIONS_RADIUS_M = float(os.getenv("NEARBY_STATIONS_RADIUS_M", "5000"))
NEARBY_STATIONS_LIMIT = int(os.getenv("NEARBY_STATIONS_LIMIT", "10"))
OFFICERS_PER_ALERT = int(os.getenv("OFFICERS_PER_ALERT", "2"))
MAX_GUARDIANS = 5
MAX_TRIP_BUDDIES = 4
CHAT_HISTORY_LIMIT = 100
TRIP_CHAT_HISTORY_LIMIT = 200
TRIP_SEARCH_RADIUS_KM = 5
