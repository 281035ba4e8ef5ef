import re
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict


_SEPARATORS = re.compile(r"[\s\-().]")
_E164 = re.compile(r"^\+?[1-9]\d{3,14}$")


class PhoneNumber(BaseModel):
    """
    Normalized phone number.

    `number` holds the digits as received with separators stripped; a leading
    '+' is kept when present. `canonical_format` is what goes on the wire.
    """
    model_config = ConfigDict(frozen=True)

    number: str

    @classmethod
    def from_raw(cls, raw: str) -> "PhoneNumber":
        """Wrap a raw string without validating it."""
        return cls(number=_SEPARATORS.sub("", raw or ""))

    @classmethod
    def parse(cls, raw: str) -> "PhoneNumber":
        """
        Strict constructor.

        Raises:
            ValueError: If `raw` is not a plausible E.164 number
        """
        number = _SEPARATORS.sub("", raw or "")
        if not _E164.match(number):
            raise ValueError(f"Invalid phone number: {raw!r}")
        return cls(number=number)

    @property
    def canonical_format(self) -> str:
        if not self.number or self.number.startswith("+"):
            return self.number
        return f"+{self.number}"

    def __str__(self) -> str:
        return self.canonical_format


class CallInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    from_number: PhoneNumber
    to_number: PhoneNumber
    resource_uri: str


class IncomingPhonenumberConfig(BaseModel):
    """
    Webhook configuration of an incoming number.

    Every field is optional. On update, None leaves the server-side value
    untouched; on read, None means the value is not set.
    """
    model_config = ConfigDict(frozen=True)

    friendly_name: Optional[str] = None
    voice_url: Optional[str] = None
    voice_fallback_url: Optional[str] = None
    status_callback_url: Optional[str] = None
    sms_url: Optional[str] = None
    sms_fallback_url: Optional[str] = None


class IncomingPhonenumber(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    config: IncomingPhonenumberConfig


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    call_id: str
    muted: bool


class ConferenceStatus(NamedTuple):
    status: str
    participant_uris: List[str]
