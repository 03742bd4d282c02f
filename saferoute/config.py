# saferoute/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
FIREBASE_DB_URL     = os.getenv("FIREBASE_DB_URL", "").rstrip("/")
TWILIO_ACCOUNT_SID  = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN   = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

DATA_DIR     = Path(os.getenv("SAFEROUTE_DATA_DIR", "data"))
RISK_POLICY  = os.getenv("SAFEROUTE_RISK_POLICY", "max")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "20"))

ASSISTANT_MODEL = os.getenv("SAFEROUTE_ASSISTANT_MODEL", "gpt-4.1-2025-04-14")

PROXIMITY_THRESHOLD_M = 100.0

# Nottingham city centre, used when the device location is unavailable
FALLBACK_LOCATION = (52.9545, -1.1587)
