"""
Execution driver for Twilio REST operations.

Sends the request an Operation builds through the Twilio SDK's HTTP client and
hands the XML body back to the operation's parser.
"""
import asyncio
import logging
from typing import List, Optional, Tuple

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client
from twilio.twiml.voice_response import VoiceResponse

from src.config import HttpConfig, settings
from src.rest.exceptions import TwilioOperationError
from src.rest.models import (
    CallInfo,
    IncomingPhonenumber,
    IncomingPhonenumberConfig,
    Participant,
    PhoneNumber,
)
from src.rest.operations import (
    DialOperation,
    GetConferenceParticipantInfo,
    GetConferenceParticipantURIs,
    HttpRequest,
    ListAvailableNumbers,
    Operation,
    R,
    UpdateIncomingPhonenumberConfig,
)
from src.rest.parsing import find_record, optional_text_of

logger = logging.getLogger(__name__)

XML_HEADERS = {"Accept": "application/xml"}


def get_twilio_client() -> Client:
    """
    Get authenticated Twilio client.

    Returns:
        Configured Twilio client instance

    Raises:
        ValueError: If credentials not configured
    """
    if not settings.twilio_account_sid or not settings.twilio_auth_token:
        raise ValueError("Twilio credentials not configured in environment")

    return Client(settings.twilio_account_sid, settings.twilio_auth_token)


def generate_twiml(greeting: str = "Hello, please hold while we connect you.") -> str:
    """
    Generate the TwiML returned to Twilio when a dialed call is answered.

    Args:
        greeting: Text spoken to the callee

    Returns:
        TwiML XML string
    """
    response = VoiceResponse()
    response.say(greeting, voice="Polly.Amy")
    response.pause(length=1)

    twiml_str = str(response)
    logger.info(f"Generated TwiML: {twiml_str}")
    return twiml_str


def _rest_exception(request: HttpRequest, status: int, body: str) -> TwilioRestException:
    """Build a TwilioRestException from a <RestException> body when there is one."""
    message = body
    code = None
    details = None
    try:
        error = find_record(body, "RestException")
    except TwilioOperationError:
        pass
    else:
        message = optional_text_of(error.findall("Message")) or body
        raw_code = optional_text_of(error.findall("Code"))
        code = int(raw_code) if raw_code and raw_code.isdigit() else None
        more_info = optional_text_of(error.findall("MoreInfo"))
        if more_info:
            details = {"more_info": more_info}

    return TwilioRestException(
        status, request.url, msg=message, code=code, method=request.method, details=details
    )


class TwilioRestDriver:
    """
    Runs Operations against the Twilio REST API.

    Holds no per-call state, so one driver can serve concurrent callers.
    """

    def __init__(self, client: Optional[Client] = None, config: Optional[HttpConfig] = None):
        self._client = client
        self.config = config or HttpConfig.from_settings(settings)

        logger.info(f"TwilioRestDriver initialized: api_base={self.config.api_base}")

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_twilio_client()
        return self._client

    def send(self, request: HttpRequest) -> str:
        """
        Send a request and return the response body.

        Raises:
            TwilioRestException: If Twilio answers with an error status
        """
        logger.info(f"Twilio request: {request.method} {request.url}")

        if request.method == "GET":
            response = self.client.request(
                request.method, request.url, params=request.params or None, headers=dict(XML_HEADERS)
            )
        else:
            response = self.client.request(
                request.method, request.url, data=request.params, headers=dict(XML_HEADERS)
            )

        if response.status_code >= 400:
            logger.error(
                f"Twilio error {response.status_code} for {request.method} {request.url}: "
                f"{response.text[:200]}"
            )
            raise _rest_exception(request, response.status_code, response.text)

        return response.text

    def execute(self, operation: Operation[R]) -> R:
        """
        Run an operation: build its request, send it, parse the response.

        Raises:
            TwilioRestException: On HTTP error status
            ResponseParseError: If the response cannot be parsed
        """
        body = self.send(operation.request(self.config))
        try:
            return operation.parser(body)
        except TwilioOperationError as e:
            logger.error(f"Failed to parse response for {type(operation).__name__}: {e}", exc_info=True)
            raise

    async def execute_async(self, operation: Operation[R]) -> R:
        """Run `execute` in a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(self.execute, operation)

    def list_available_numbers(self, country_code: str) -> List[PhoneNumber]:
        return self.execute(ListAvailableNumbers(country_code))

    def dial(
        self,
        to_number: str,
        from_number: Optional[str] = None,
        callback_url: Optional[str] = None,
        status_callback_url: Optional[str] = None,
    ) -> CallInfo:
        """
        Place an outbound call.

        Args:
            to_number: Number to call (E.164, e.g. +15551234567)
            from_number: Caller ID (defaults to configured Twilio number)
            callback_url: TwiML URL fetched on answer (defaults to this service's /twiml)
            status_callback_url: Optional URL notified of call status changes

        Raises:
            ValueError: If no caller ID is available or a number is malformed
        """
        from_number = from_number or settings.twilio_phone_number
        if not from_number:
            raise ValueError("from_number must be specified or TWILIO_PHONE_NUMBER configured")

        operation = DialOperation(
            from_number=PhoneNumber.parse(from_number),
            to_number=PhoneNumber.parse(to_number),
            callback_url=callback_url or f"{settings.public_base_url.rstrip('/')}/twiml",
            status_callback_url=status_callback_url,
        )
        call = self.execute(operation)

        logger.info(
            f"Outbound call created: {call.id}, "
            f"To: {call.to_number}, From: {call.from_number}"
        )
        return call

    def update_incoming_number(
        self, sid: str, config: IncomingPhonenumberConfig
    ) -> IncomingPhonenumber:
        return self.execute(UpdateIncomingPhonenumberConfig(sid, config))

    def get_conference_participants(self, conference_id: str) -> Tuple[str, List[Participant]]:
        """
        Fetch a conference's status and every participant, in the order Twilio lists them.
        """
        status, uris = self.execute(GetConferenceParticipantURIs(conference_id))
        participants = [self.execute(GetConferenceParticipantInfo(uri)) for uri in uris]

        logger.info(f"Conference {conference_id}: status={status}, participants={len(participants)}")
        return status, participants
