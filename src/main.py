import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from twilio.base.exceptions import TwilioRestException

from src.config import settings
from src.rest.client import TwilioRestDriver, generate_twiml
from src.rest.exceptions import ResponseParseError
from src.rest.models import IncomingPhonenumberConfig
from src.rest.operations import (
    ListAvailableNumbers,
    UpdateIncomingPhonenumberConfig,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

driver = TwilioRestDriver()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        f"Twilio REST service starting: api_base={driver.config.api_base}, "
        f"credentials={'set' if settings.twilio_auth_token else 'missing'}"
    )
    yield
    logger.info("Twilio REST service shut down")


app = FastAPI(title="Twilio REST Operations", lifespan=lifespan)


def _to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, TwilioRestException):
        return HTTPException(status_code=502, detail=f"Twilio error {e.code}: {e.msg}")
    if isinstance(e, ResponseParseError):
        return HTTPException(status_code=502, detail=f"Unexpected Twilio response: {e}")
    return HTTPException(status_code=503, detail=str(e))


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "api_base": driver.config.api_base,
        "credentials_configured": bool(settings.twilio_account_sid and settings.twilio_auth_token),
    }


@app.api_route("/twiml", methods=["GET", "POST"])
async def twiml_endpoint():
    """Serve TwiML for answered outbound calls."""
    return Response(content=generate_twiml(), media_type="application/xml")


@app.post("/call/outbound")
async def initiate_outbound_call(to_number: str, from_number: Optional[str] = None):
    """Initiate an outbound call."""
    try:
        call = await asyncio.to_thread(driver.dial, to_number, from_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (TwilioRestException, ResponseParseError) as e:
        raise _to_http_error(e)
    return call


@app.get("/numbers/available/{country_code}")
async def available_numbers(country_code: str):
    try:
        numbers = await driver.execute_async(ListAvailableNumbers(country_code))
    except (TwilioRestException, ResponseParseError, ValueError) as e:
        raise _to_http_error(e)
    return {"numbers": [number.canonical_format for number in numbers]}


@app.post("/numbers/{sid}/config")
async def update_number_config(sid: str, config: IncomingPhonenumberConfig):
    try:
        return await driver.execute_async(UpdateIncomingPhonenumberConfig(sid, config))
    except (TwilioRestException, ResponseParseError, ValueError) as e:
        raise _to_http_error(e)


@app.get("/conferences/{conference_id}")
async def conference_participants(conference_id: str):
    try:
        status, participants = await asyncio.to_thread(
            driver.get_conference_participants, conference_id
        )
    except (TwilioRestException, ResponseParseError, ValueError) as e:
        raise _to_http_error(e)
    return {"status": status, "participants": participants}


if __name__ == "__main__":
    import os
    import uvicorn
    port = int(os.environ.get("PORT", settings.server_port))
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=port,
        log_level="info"
    )
