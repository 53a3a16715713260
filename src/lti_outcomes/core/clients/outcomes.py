"""LTI Basic Outcomes 1.0 client.

Protocol docs: https://www.imsglobal.org/specs/ltiv1p1/implementation-guide (section 6)
Every call is one signed POST of an imsx_POXEnvelopeRequest document to the
platform's lis_outcome_service_url. No retries and no implicit timeout;
wrap the coroutine in ``asyncio.wait_for`` to bound it.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Optional, Union

import httpx

from ..codec import RESPONSE_CODEC, EnvelopeError, is_outcomes_payload, serialize
from ..models import (
    BasicResult,
    DeleteResultRequest,
    Envelope,
    LisResult,
    Operation,
    ReadResultRequest,
    ReplaceResultRequest,
    Result,
    ResultRecord,
    ResultScore,
    SCORE_LANGUAGE,
    StatusInfo,
)
from ..oauth import sign_request

__all__ = ["delete_score", "post_score", "read_score", "is_outcomes_payload", "format_score"]

logger = logging.getLogger(__name__)

XML_CONTENT_TYPE = "application/xml"

Score = Union[float, Decimal]


class _ShapeError(Exception):
    """Response arrived but could not be unwrapped to a status."""


def format_score(score: Score) -> str:
    """Render a score in "en" decimal notation: '.' separator, no exponent.

    Floats use their shortest round-trip digits, so 0.5 becomes "0.5".
    """
    if not isinstance(score, Decimal):
        score = Decimal(repr(float(score)))
    return format(score, "f")


def _in_range(score: Score) -> bool:
    # Decimal NaN/sNaN must not reach a comparison: sNaN raises there.
    finite = score.is_finite() if isinstance(score, Decimal) else math.isfinite(score)
    return finite and 0 <= score <= 1


def _parse_score(text: Optional[str]) -> Optional[float]:
    if not text or not text.strip():
        return None
    try:
        value = float(text)
    except ValueError:
        logger.debug("Ignoring non-numeric score text %r", text)
        return None
    if not math.isfinite(value):
        logger.debug("Ignoring non-finite score text %r", text)
        return None
    return value


async def _send(
    envelope: Envelope,
    service_url: str,
    consumer_key: str,
    consumer_secret: str,
    client: Optional[httpx.AsyncClient],
) -> httpx.Response:
    """Serialize, sign and POST the envelope. Returns the raw response."""
    body = serialize(envelope)
    headers = {
        "Authorization": sign_request("POST", service_url, consumer_key, consumer_secret, body),
        "Content-Type": XML_CONTENT_TYPE,
    }
    logger.debug("Sending %s to %s", envelope.body.operation.value, service_url)

    if client is not None:
        return await client.post(service_url, content=body, headers=headers)
    async with httpx.AsyncClient(timeout=None) as owned:
        return await owned.post(service_url, content=body, headers=headers)


def _unwrap(response: httpx.Response) -> tuple[StatusInfo, Envelope]:
    """Parse a response body down to its status.

    Raises:
        httpx.HTTPStatusError: non-2xx status and no envelope in the body.
        _ShapeError: the body does not unwrap to a response status.
    """
    if not response.content.strip():
        response.raise_for_status()
        raise _ShapeError("Invalid response")

    try:
        envelope = RESPONSE_CODEC.deserialize(response.content)
    except EnvelopeError as exc:
        response.raise_for_status()
        raise _ShapeError(f"Invalid envelope: {exc}") from exc

    header = envelope.header
    if header is None or header.kind != "response":
        raise _ShapeError("Invalid header")
    if header.status_info is None:
        raise _ShapeError("Invalid status")
    return header.status_info, envelope


async def _basic_call(
    envelope: Envelope,
    service_url: str,
    consumer_key: str,
    consumer_secret: str,
    client: Optional[httpx.AsyncClient],
) -> BasicResult:
    try:
        response = await _send(envelope, service_url, consumer_key, consumer_secret, client)
        status, _ = _unwrap(response)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        logger.warning("Outcomes request to %s failed: %s", service_url, exc)
        return BasicResult(is_success=False, message=str(exc) or type(exc).__name__)
    except _ShapeError as exc:
        logger.warning("Unusable outcomes response from %s: %s", service_url, exc)
        return BasicResult(is_success=False, message=str(exc))

    return BasicResult(is_success=status.is_success, message=status.description)


async def delete_score(
    service_url: str,
    consumer_key: str,
    consumer_secret: str,
    sourced_id: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> BasicResult:
    """Delete the score stored for ``sourced_id``.

    Args:
        service_url: The platform's lis_outcome_service_url.
        consumer_key: OAuth consumer key shared with the platform.
        consumer_secret: OAuth consumer secret.
        sourced_id: The lis_result_sourcedid from the launch.
        client: Optional client to send through; a fresh one is used otherwise.
    """
    envelope = Envelope.request(DeleteResultRequest(result_record=ResultRecord(sourced_id=sourced_id)))
    return await _basic_call(envelope, service_url, consumer_key, consumer_secret, client)


async def post_score(
    service_url: str,
    consumer_key: str,
    consumer_secret: str,
    sourced_id: str,
    score: Optional[Score],
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> BasicResult:
    """Replace the score stored for ``sourced_id``.

    ``score`` must lie in [0.0, 1.0]. It is always sent with "en" decimal
    formatting whatever the process locale. ``None`` sends a resultScore
    without a value.
    """
    text = None
    if score is not None:
        if not _in_range(score):
            return BasicResult(is_success=False, message=f"Score {score} is outside the range 0.0 to 1.0")
        text = format_score(score)

    record = ResultRecord(
        sourced_id=sourced_id,
        result=Result(result_score=ResultScore(language=SCORE_LANGUAGE, text_string=text)),
    )
    envelope = Envelope.request(ReplaceResultRequest(result_record=record))
    return await _basic_call(envelope, service_url, consumer_key, consumer_secret, client)


async def read_score(
    service_url: str,
    consumer_key: str,
    consumer_secret: str,
    sourced_id: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> LisResult:
    """Read the score stored for ``sourced_id``.

    A successful response without a result is valid with no score (not yet
    graded). So is one whose score text is not a number.
    """
    envelope = Envelope.request(ReadResultRequest(result_record=ResultRecord(sourced_id=sourced_id)))
    try:
        response = await _send(envelope, service_url, consumer_key, consumer_secret, client)
        status, reply = _unwrap(response)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        logger.warning("Outcomes request to %s failed: %s", service_url, exc)
        return LisResult(is_valid=False, message=str(exc) or type(exc).__name__)
    except _ShapeError as exc:
        logger.warning("Unusable outcomes response from %s: %s", service_url, exc)
        return LisResult(is_valid=False, message=str(exc))

    if not status.is_success:
        return LisResult(is_valid=False, message=status.description)

    score = None
    body = reply.body
    if body is not None and body.operation is Operation.READ_RESULT_RESPONSE:
        result = body.result
        if result is not None and result.result_score is not None:
            score = _parse_score(result.result_score.text_string)
    return LisResult(is_valid=True, score=score, message=status.description)
