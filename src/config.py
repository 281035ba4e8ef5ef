from dataclasses import dataclass

from pydantic_settings import BaseSettings
from pydantic import Field


API_VERSION = "2010-04-01"
TWILIO_BASE = "https://api.twilio.com"


class Settings(BaseSettings):
    twilio_account_sid: str = Field(default="")
    twilio_auth_token: str = Field(default="")
    twilio_phone_number: str = Field(default="")

    # REST endpoint roots
    twilio_base: str = Field(default=TWILIO_BASE)
    twilio_api_version: str = Field(default=API_VERSION)

    # Public URL Twilio calls back into (TwiML, status callbacks)
    public_base_url: str = Field(default="http://localhost:8000")

    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=8000)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Allow extra fields in .env without raising errors


@dataclass(frozen=True)
class HttpConfig:
    """Endpoint roots shared by every operation. Read-only."""
    twilio_base: str
    api_base: str
    api_version: str = API_VERSION

    @classmethod
    def for_account(
        cls,
        account_sid: str,
        twilio_base: str = TWILIO_BASE,
        api_version: str = API_VERSION,
    ) -> "HttpConfig":
        twilio_base = twilio_base.rstrip("/")
        return cls(
            twilio_base=twilio_base,
            api_base=f"{twilio_base}/{api_version}/Accounts/{account_sid}",
            api_version=api_version,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpConfig":
        return cls.for_account(
            settings.twilio_account_sid,
            twilio_base=settings.twilio_base,
            api_version=settings.twilio_api_version,
        )


settings = Settings()
