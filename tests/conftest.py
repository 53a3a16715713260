# tests/conftest.py

import asyncio
from typing import Callable, Optional

import httpx
import pytest

SERVICE_URL = "https://lms.example.edu/mod/lti/service.php"
CONSUMER_KEY = "tool-key"
CONSUMER_SECRET = "tool-secret"
SOURCED_ID = "3124567:54321:2:course-v1"

NAMESPACE = "http://www.imsglobal.org/services/ltiv1p1/xsd/imsoms_v1p0"


def response_xml(code_major: str = "success", description: str = "", body: str = "") -> bytes:
    """A platform response envelope as Moodle and Canvas send it."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<imsx_POXEnvelopeResponse xmlns="{NAMESPACE}">
  <imsx_POXHeader>
    <imsx_POXResponseHeaderInfo>
      <imsx_version>V1.0</imsx_version>
      <imsx_messageIdentifier>4560</imsx_messageIdentifier>
      <imsx_statusInfo>
        <imsx_codeMajor>{code_major}</imsx_codeMajor>
        <imsx_severity>status</imsx_severity>
        <imsx_description>{description}</imsx_description>
        <imsx_messageRefIdentifier>999999123</imsx_messageRefIdentifier>
        <imsx_operationRefIdentifier>replaceResult</imsx_operationRefIdentifier>
      </imsx_statusInfo>
    </imsx_POXResponseHeaderInfo>
  </imsx_POXHeader>
  <imsx_POXBody>{body}</imsx_POXBody>
</imsx_POXEnvelopeResponse>""".encode("utf-8")


def read_body(text_string: Optional[str]) -> str:
    if text_string is None:
        return "<readResultResponse/>"
    return (
        "<readResultResponse><result><resultScore>"
        "<language>en</language>"
        f"<textString>{text_string}</textString>"
        "</resultScore></result></readResultResponse>"
    )


class RecordingTransport:
    """Fake platform: records requests and answers with a fixed response."""

    def __init__(self, content: bytes = b"", status_code: int = 200, error: Optional[Exception] = None):
        self.content = content
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, content=self.content, headers={"Content-Type": "application/xml"})


def call_with(transport: RecordingTransport, operation: Callable, *args, **kwargs):
    """Run an outcomes coroutine against the fake platform."""

    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(transport)) as client:
            return await operation(*args, client=client, **kwargs)

    return asyncio.run(main())


@pytest.fixture
def platform():
    def make(**kwargs) -> RecordingTransport:
        return RecordingTransport(**kwargs)

    return make
