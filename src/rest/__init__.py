"""Twilio REST operations and their execution driver"""
from .client import TwilioRestDriver, generate_twiml, get_twilio_client
from .exceptions import ResponseParseError, ShapeError, TwilioOperationError
from .models import (
    CallInfo,
    ConferenceStatus,
    IncomingPhonenumber,
    IncomingPhonenumberConfig,
    Participant,
    PhoneNumber,
)
from .operations import (
    DialOperation,
    GetConferenceParticipantInfo,
    GetConferenceParticipantURIs,
    HttpRequest,
    ListAvailableNumbers,
    Operation,
    UpdateIncomingPhonenumberConfig,
)

__all__ = [
    "TwilioRestDriver",
    "generate_twiml",
    "get_twilio_client",
    "ResponseParseError",
    "ShapeError",
    "TwilioOperationError",
    "CallInfo",
    "ConferenceStatus",
    "IncomingPhonenumber",
    "IncomingPhonenumberConfig",
    "Participant",
    "PhoneNumber",
    "DialOperation",
    "GetConferenceParticipantInfo",
    "GetConferenceParticipantURIs",
    "HttpRequest",
    "ListAvailableNumbers",
    "Operation",
    "UpdateIncomingPhonenumberConfig",
]
