"""
Tests for the HTTP surface.

The driver is patched, so Twilio is never contacted.
"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from twilio.base.exceptions import TwilioRestException

from src import main
from src.rest.exceptions import ShapeError
from src.rest.models import (
    CallInfo,
    IncomingPhonenumber,
    IncomingPhonenumberConfig,
    Participant,
    PhoneNumber,
)
from src.rest.operations import ListAvailableNumbers, UpdateIncomingPhonenumberConfig


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


def test_health(client):
    """Test: /health reports the API base"""
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["api_base"] == main.driver.config.api_base


def test_twiml_endpoint(client):
    """Test: /twiml serves XML for both GET and POST"""
    for method in (client.get, client.post):
        response = method("/twiml")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "<Response>" in response.text


def test_outbound_call(client):
    """Test: /call/outbound returns the created call"""
    call = CallInfo(
        id="CA1",
        from_number=PhoneNumber.from_raw("+15550001111"),
        to_number=PhoneNumber.from_raw("+15552223333"),
        resource_uri="/2010-04-01/Accounts/AC123/Calls/CA1",
    )
    with patch.object(main.driver, "dial", return_value=call) as mock_dial:
        response = client.post("/call/outbound", params={"to_number": "+15552223333"})

    assert response.status_code == 200
    assert response.json()["id"] == "CA1"
    mock_dial.assert_called_once_with("+15552223333", None)


def test_outbound_call_invalid_number(client):
    """Test: Invalid input maps to 400"""
    with patch.object(main.driver, "dial", side_effect=ValueError("Invalid phone number")):
        response = client.post("/call/outbound", params={"to_number": "nope"})
    assert response.status_code == 400


def test_outbound_call_twilio_error(client):
    """Test: Twilio errors map to 502"""
    error = TwilioRestException(400, "https://api.twilio.com/Calls", msg="bad To", code=21211)
    with patch.object(main.driver, "dial", side_effect=error):
        response = client.post("/call/outbound", params={"to_number": "+15552223333"})
    assert response.status_code == 502
    assert "21211" in response.json()["detail"]


def test_available_numbers(client):
    """Test: Available numbers come back in canonical format"""
    numbers = [PhoneNumber.from_raw("15105647903"), PhoneNumber.from_raw("+15104884379")]
    with patch.object(main.driver, "execute_async", new_callable=AsyncMock) as mock_execute:
        mock_execute.return_value = numbers
        response = client.get("/numbers/available/US")

    assert response.status_code == 200
    assert response.json() == {"numbers": ["+15105647903", "+15104884379"]}
    mock_execute.assert_awaited_once_with(ListAvailableNumbers("US"))


def test_update_number_config(client):
    """Test: Only the posted config fields reach the operation"""
    config = IncomingPhonenumberConfig(voice_url="https://example.com/voice")
    result = IncomingPhonenumber(id="PN1", config=config)
    with patch.object(main.driver, "execute_async", new_callable=AsyncMock) as mock_execute:
        mock_execute.return_value = result
        response = client.post("/numbers/PN1/config", json={"voice_url": "https://example.com/voice"})

    assert response.status_code == 200
    assert response.json()["config"]["voice_url"] == "https://example.com/voice"
    mock_execute.assert_awaited_once_with(UpdateIncomingPhonenumberConfig("PN1", config))


def test_update_number_config_shape_error(client):
    """Test: Unexpected Twilio responses map to 502"""
    with patch.object(main.driver, "execute_async", new_callable=AsyncMock) as mock_execute:
        mock_execute.side_effect = ShapeError("IncomingPhoneNumber")
        response = client.post("/numbers/PN1/config", json={})
    assert response.status_code == 502


def test_conference_participants(client):
    """Test: Conference status and participants are returned"""
    participants = [Participant(call_id="CA1", muted=True)]
    with patch.object(
        main.driver, "get_conference_participants", return_value=("in-progress", participants)
    ):
        response = client.get("/conferences/CF1")

    assert response.status_code == 200
    assert response.json() == {
        "status": "in-progress",
        "participants": [{"call_id": "CA1", "muted": True}],
    }


def test_conference_missing_credentials(client):
    """Test: Missing credentials map to 503"""
    with patch.object(
        main.driver,
        "get_conference_participants",
        side_effect=ValueError("Twilio credentials not configured in environment"),
    ):
        response = client.get("/conferences/CF1")
    assert response.status_code == 503
