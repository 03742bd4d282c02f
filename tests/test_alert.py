from urllib.parse import parse_qs

import httpx
import pytest

from conftest import json_client, mock_client
from saferoute import config
from saferoute.agents.alert import alert_message, detect_trigger, format_phone_number, notify_emergency_contacts, send_alert
from saferoute.errors import AlertError
from saferoute.models import Coordinate, EmergencyContact


@pytest.fixture
def twilio(monkeypatch):
    monkeypatch.setattr(config, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(config, "TWILIO_AUTH_TOKEN", "secret")
    monkeypatch.setattr(config, "TWILIO_PHONE_NUMBER", "+447700900000")


@pytest.mark.parametrize("transcript, word", [
    ("Please HELP me", "help"),
    ("I think I'm in danger.", "danger"),
    ("that was helpful, thanks", None),
    ("", None),
])
def test_detect_trigger(transcript, word):
    assert detect_trigger(transcript) == word


def test_detect_custom_trigger_words():
    assert detect_trigger("pineapple pizza", words=["Pineapple"]) == "pineapple"


@pytest.mark.parametrize("phone, expected", [
    ("07700 900123", "+447700 900123"),
    ("  07700900123 ", "+447700900123"),
    ("+15551234567", "+15551234567"),
    ("7700900123", "7700900123"),
    ("", ""),
])
def test_format_phone_number(phone, expected):
    assert format_phone_number(phone) == expected


def test_alert_message_defaults_sender():
    assert alert_message("Jo") == "🚨 Hi Jo, Your friend may be in danger and said a trigger word!"
    assert "Alex may be in danger" in alert_message("Jo", "Alex")


def test_send_alert_posts_one_message_per_contact(twilio):
    sent = []

    def handler(request):
        form = parse_qs(request.content.decode())
        sent.append((request.url.path, form["To"][0], form["From"][0], form["Body"][0]))
        return httpx.Response(201, json={"sid": f"SM{len(sent)}", "status": "queued"})

    contacts = [EmergencyContact(name="Jo", phone="07700900123"), EmergencyContact(name="Sam", phone="+15551234567")]
    results = send_alert(contacts, "help", client=mock_client(handler))

    assert results == [
        {"to": "+447700900123", "sid": "SM1", "status": "queued"},
        {"to": "+15551234567", "sid": "SM2", "status": "queued"},
    ]
    assert sent[0] == ("/2010-04-01/Accounts/AC123/Messages.json", "+447700900123", "+447700900000", "help")


def test_notify_personalises_each_message(twilio):
    bodies = []

    def handler(request):
        bodies.append(parse_qs(request.content.decode())["Body"][0])
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    notify_emergency_contacts([EmergencyContact(name="Jo", phone="+1"), EmergencyContact(name="Sam", phone="+2")],
                              "Alex", client=mock_client(handler))
    assert bodies == [alert_message("Jo", "Alex"), alert_message("Sam", "Alex")]


def test_send_alert_requires_contacts_and_message(twilio):
    with pytest.raises(AlertError):
        send_alert([], "help")
    with pytest.raises(AlertError):
        send_alert([EmergencyContact(name="Jo", phone="+1")], "")


def test_send_alert_requires_credentials(monkeypatch):
    monkeypatch.setattr(config, "TWILIO_ACCOUNT_SID", None)
    with pytest.raises(AlertError):
        send_alert([EmergencyContact(name="Jo", phone="+1")], "help")


def test_gateway_error_raises(twilio):
    with pytest.raises(AlertError):
        send_alert([EmergencyContact(name="Jo", phone="+1")], "help",
                   client=json_client({"message": "bad number"}, status_code=400))


def test_alert_message_includes_location():
    here = Coordinate(latitude=52.954512, longitude=-1.158699)
    assert alert_message("Jo", "Alex", here) == (
        "🚨 Hi Jo, Alex may be in danger and said a trigger word!"
        " They are currently at latitude: 52.9545, longitude: -1.1587."
    )


def test_notify_passes_location_to_every_message(twilio):
    bodies = []

    def handler(request):
        bodies.append(parse_qs(request.content.decode())["Body"][0])
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    here = Coordinate(latitude=51.5, longitude=-0.12)
    notify_emergency_contacts([EmergencyContact(name="Jo", phone="+1")], "Alex",
                              client=mock_client(handler), location=here)
    assert bodies[0].endswith("latitude: 51.5000, longitude: -0.1200.")
