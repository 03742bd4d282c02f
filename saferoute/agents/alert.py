"""
SafeRoute – emergency alert agent
Spots trigger words in a speech transcript and texts the user's emergency
contacts through the Twilio REST API.
"""

from typing import Iterable, List, Optional
import logging
import re

import backoff
import httpx

from saferoute import config
from saferoute.errors import AlertError
from saferoute.models import Coordinate, EmergencyContact

log = logging.getLogger(__name__)

TWILIO_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

TRIGGER_WORDS = ("help", "danger", "emergency", "sos", "stop")
UK_COUNTRY_CODE = "+44"


def detect_trigger(transcript: str, words: Iterable[str] = TRIGGER_WORDS) -> Optional[str]:
    """First trigger word found as a whole word (any case), or None."""
    tokens = re.findall(r"[a-z']+", (transcript or "").lower())
    wanted = {w.lower() for w in words}
    for token in tokens:
        if token in wanted:
            return token
    return None


def format_phone_number(phone: str) -> str:
    if not phone:
        return ""
    trimmed = phone.strip()
    if trimmed.startswith("+"):
        return trimmed
    if trimmed.startswith("0"):
        return f"{UK_COUNTRY_CODE}{trimmed[1:]}"
    return trimmed


def alert_message(contact_name: str, sender_name: str = "", location: Optional[Coordinate] = None) -> str:
    sender = sender_name or "Your friend"
    message = f"🚨 Hi {contact_name}, {sender} may be in danger and said a trigger word!"
    if location is not None:
        message += (
            f" They are currently at latitude: {location.latitude:.4f},"
            f" longitude: {location.longitude:.4f}."
        )
    return message


def _is_rate_limit(exc: Exception) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429


@backoff.on_exception(
    backoff.expo, httpx.HTTPStatusError, max_tries=4,
    giveup=lambda e: not _is_rate_limit(e),
)
def _post_message(http: httpx.Client, to: str, body: str) -> dict:
    resp = http.post(
        TWILIO_URL.format(sid=config.TWILIO_ACCOUNT_SID),
        data={"Body": body, "From": config.TWILIO_PHONE_NUMBER, "To": to},
        auth=(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN),
    )
    resp.raise_for_status()
    return resp.json()


def send_alert(
    contacts: List[EmergencyContact],
    message: str,
    client: Optional[httpx.Client] = None,
) -> List[dict]:
    """One SMS per contact; returns `[{to, sid, status}, ...]`."""
    if not contacts or not message:
        raise AlertError("Missing contacts or message")
    if not (config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN and config.TWILIO_PHONE_NUMBER):
        raise AlertError("Twilio credentials not set")

    http = client or httpx.Client(timeout=config.HTTP_TIMEOUT)
    results = []
    try:
        for contact in contacts:
            to = format_phone_number(contact.phone)
            log.info("Sending alert to %s", to)
            data = _post_message(http, to, message)
            results.append({"to": to, "sid": data.get("sid"), "status": data.get("status")})
    except httpx.HTTPStatusError as exc:
        raise AlertError(
            f"Twilio SMS failed with HTTP {exc.response.status_code}: {exc.response.text}"
        ) from exc
    except httpx.HTTPError as exc:
        raise AlertError(f"Twilio SMS failed: {exc}") from exc
    finally:
        if client is None:
            http.close()
    return results


def notify_emergency_contacts(
    contacts: List[EmergencyContact],
    sender_name: str = "",
    client: Optional[httpx.Client] = None,
    location: Optional[Coordinate] = None,
) -> List[dict]:
    """Personalised message for each contact, sent one by one."""
    results = []
    for contact in contacts:
        message = alert_message(contact.name, sender_name, location)
        results.extend(send_alert([contact], message, client=client))
    return results
