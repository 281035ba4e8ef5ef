"""
Twilio REST operations.

Each operation builds its own HTTP request from its fields and a shared
HttpConfig, and parses the XML response into its result type. The driver
composes them as `op.parser(send(op.request(config)))` without knowing which
operation it holds.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, TypeVar
from urllib.parse import quote

from src.config import HttpConfig
from src.rest.exceptions import ResponseParseError
from src.rest.models import (
    CallInfo,
    ConferenceStatus,
    IncomingPhonenumber,
    IncomingPhonenumberConfig,
    Participant,
    PhoneNumber,
)
from src.rest.parsing import (
    ResponseBody,
    find_record,
    optional_text_of,
    parse_document,
    text_of,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

DEFAULT_DIAL_TIMEOUT = 30


@dataclass(frozen=True)
class HttpRequest:
    """Fully formed request: method, absolute URL and form parameters."""
    method: str
    url: str
    params: Dict[str, str] = field(default_factory=dict)


class Operation(ABC, Generic[R]):
    """A single Twilio REST action: request construction plus response parsing."""

    @abstractmethod
    def request(self, config: HttpConfig) -> HttpRequest:
        """Build the HTTP request. Pure: no I/O, no global state."""

    @property
    @abstractmethod
    def parser(self) -> Callable[[ResponseBody], R]:
        """Function turning the XML response body into the result."""


def _segment(value: str) -> str:
    return quote(value, safe="")


@dataclass(frozen=True)
class ListAvailableNumbers(Operation[List[PhoneNumber]]):
    country_code: str

    def request(self, config: HttpConfig) -> HttpRequest:
        return HttpRequest(
            "GET",
            f"{config.api_base}/AvailablePhoneNumbers/{_segment(self.country_code)}/Local",
        )

    @property
    def parser(self) -> Callable[[ResponseBody], List[PhoneNumber]]:
        return self.parse

    @staticmethod
    def parse(body: ResponseBody) -> List[PhoneNumber]:
        root = parse_document(body)
        return [
            PhoneNumber.from_raw(text_of([number]))
            for available in root.iter("AvailablePhoneNumber")
            for number in available.findall("PhoneNumber")
        ]


@dataclass(frozen=True)
class DialOperation(Operation[CallInfo]):
    """
    Place an outbound call.

    `timeout` is kept with the operation but is not sent to Twilio, so the
    server-side ring timeout stays at its default whatever value is given.
    """
    from_number: PhoneNumber
    to_number: PhoneNumber
    callback_url: str
    status_callback_url: Optional[str] = None
    timeout: int = DEFAULT_DIAL_TIMEOUT

    def request(self, config: HttpConfig) -> HttpRequest:
        params = {
            "From": self.from_number.canonical_format,
            "To": self.to_number.canonical_format,
            "Url": self.callback_url,
        }
        if self.status_callback_url is not None:
            params["StatusCallback"] = self.status_callback_url

        if self.timeout != DEFAULT_DIAL_TIMEOUT:
            logger.debug(f"Dial timeout={self.timeout} is not transmitted to Twilio")

        return HttpRequest("POST", f"{config.api_base}/Calls", params)

    @property
    def parser(self) -> Callable[[ResponseBody], CallInfo]:
        return self.parse

    @staticmethod
    def parse(body: ResponseBody) -> CallInfo:
        call = find_record(body, "Call")
        try:
            to_number = PhoneNumber.parse(text_of(call.findall("To")))
        except ValueError as e:
            raise ResponseParseError(f"Call has an invalid To number: {e}") from e

        return CallInfo(
            id=text_of(call.findall("Sid")),
            from_number=PhoneNumber.from_raw(text_of(call.findall("From"))),
            to_number=to_number,
            resource_uri=text_of(call.findall("Uri")),
        )


# Write-side parameter name for each config field
_CONFIG_PARAMS = (
    ("friendly_name", "FriendlyName"),
    ("voice_url", "VoiceUrl"),
    ("voice_fallback_url", "VoiceFallbackUrl"),
    ("status_callback_url", "StatusCallbackUrl"),
    ("sms_url", "SmsUrl"),
    ("sms_fallback_url", "SmsFallbackUrl"),
)


@dataclass(frozen=True)
class UpdateIncomingPhonenumberConfig(Operation[IncomingPhonenumber]):
    sid: str
    config: IncomingPhonenumberConfig

    def request(self, config: HttpConfig) -> HttpRequest:
        params = {
            "ApiVersion": config.api_version,
            "VoiceMethod": "POST",
            "VoiceFallbackMethod": "POST",
            "StatusCallbackMethod": "POST",
            "SmsMethod": "POST",
            "SmsFallbackMethod": "POST",
        }
        # Absent fields are left out so the server keeps its current value
        for attr, name in _CONFIG_PARAMS:
            value = getattr(self.config, attr)
            if value is not None:
                params[name] = value

        return HttpRequest(
            "POST",
            f"{config.api_base}/IncomingPhoneNumbers/{_segment(self.sid)}",
            params,
        )

    @property
    def parser(self) -> Callable[[ResponseBody], IncomingPhonenumber]:
        return self.parse

    @staticmethod
    def parse(body: ResponseBody) -> IncomingPhonenumber:
        number = find_record(body, "IncomingPhoneNumber")
        return IncomingPhonenumber(
            id=text_of(number.findall("Sid")),
            config=IncomingPhonenumberConfig(
                **{
                    attr: optional_text_of(number.findall(name))
                    for attr, name in _CONFIG_PARAMS
                }
            ),
        )


@dataclass(frozen=True)
class GetConferenceParticipantURIs(Operation[ConferenceStatus]):
    """Fetch a conference's status and the URIs of its participant resources."""
    conference_id: str

    def request(self, config: HttpConfig) -> HttpRequest:
        return HttpRequest(
            "GET",
            f"{config.api_base}/Conferences/{_segment(self.conference_id)}",
        )

    @property
    def parser(self) -> Callable[[ResponseBody], ConferenceStatus]:
        return self.parse

    @staticmethod
    def parse(body: ResponseBody) -> ConferenceStatus:
        conference = find_record(body, "Conference")
        return ConferenceStatus(
            text_of(conference.findall("Status")),
            [
                text_of([uri])
                for uri in conference.findall("SubresourceUris/Participants")
            ],
        )


@dataclass(frozen=True)
class GetConferenceParticipantInfo(Operation[Participant]):
    """
    Fetch one participant.

    `participant_uri` is a site-relative path as returned by
    GetConferenceParticipantURIs, so it is resolved against the site root
    rather than the account API base.
    """
    participant_uri: str

    def request(self, config: HttpConfig) -> HttpRequest:
        return HttpRequest(
            "GET",
            f"{config.twilio_base}/{self.participant_uri.lstrip('/')}",
        )

    @property
    def parser(self) -> Callable[[ResponseBody], Participant]:
        return self.parse

    @staticmethod
    def parse(body: ResponseBody) -> Participant:
        participant = find_record(body, "Participant")
        return Participant(
            call_id=text_of(participant.findall("CallSid")),
            muted=text_of(participant.findall("Muted")) == "true",
        )
