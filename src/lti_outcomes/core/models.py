"""Pydantic data models — the Basic Outcomes envelope and call results.

The envelope mirrors the imsx_POXEnvelope structure: a header (request or
response flavour) and a body holding exactly one of six operations. Both
unions are tagged, so a model always knows which wire element it maps to.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

IMSX_VERSION = "V1.0"
SCORE_LANGUAGE = "en"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Operation(str, Enum):
    """Body element names, one per request/response operation."""

    DELETE_RESULT_REQUEST = "deleteResultRequest"
    DELETE_RESULT_RESPONSE = "deleteResultResponse"
    REPLACE_RESULT_REQUEST = "replaceResultRequest"
    REPLACE_RESULT_RESPONSE = "replaceResultResponse"
    READ_RESULT_REQUEST = "readResultRequest"
    READ_RESULT_RESPONSE = "readResultResponse"

    @property
    def is_request(self) -> bool:
        return self.value.endswith("Request")


class CodeMajor(str, Enum):
    """Top-level status of an outcomes response."""

    SUCCESS = "success"
    PROCESSING = "processing"
    FAILURE = "failure"
    UNSUPPORTED = "unsupported"


class Severity(str, Enum):
    STATUS = "status"
    WARNING = "warning"
    ERROR = "error"


class ResultScore(_Frozen):
    """A score as text, always in "en" decimal notation on the wire."""

    language: str = SCORE_LANGUAGE
    text_string: Optional[str] = None


class Result(_Frozen):
    result_score: Optional[ResultScore] = None


class ResultRecord(_Frozen):
    """A gradebook cell: the platform's sourcedId plus an optional result."""

    sourced_id: str
    result: Optional[Result] = None


class StatusInfo(_Frozen):
    code_major: CodeMajor
    severity: Severity = Severity.STATUS
    description: str = ""
    message_ref_identifier: Optional[str] = None
    operation_ref_identifier: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.code_major is CodeMajor.SUCCESS


# ─── Header ──────────────────────────────────────────────────────────────────


class RequestHeaderInfo(_Frozen):
    kind: Literal["request"] = "request"
    version: str = IMSX_VERSION
    message_identifier: str = Field(default_factory=lambda: str(uuid.uuid4()))


class ResponseHeaderInfo(_Frozen):
    kind: Literal["response"] = "response"
    version: str = IMSX_VERSION
    message_identifier: str = ""
    status_info: Optional[StatusInfo] = None


HeaderInfo = Annotated[Union[RequestHeaderInfo, ResponseHeaderInfo], Field(discriminator="kind")]


# ─── Body ────────────────────────────────────────────────────────────────────


class DeleteResultRequest(_Frozen):
    operation: Literal[Operation.DELETE_RESULT_REQUEST] = Operation.DELETE_RESULT_REQUEST
    result_record: ResultRecord


class ReplaceResultRequest(_Frozen):
    operation: Literal[Operation.REPLACE_RESULT_REQUEST] = Operation.REPLACE_RESULT_REQUEST
    result_record: ResultRecord


class ReadResultRequest(_Frozen):
    operation: Literal[Operation.READ_RESULT_REQUEST] = Operation.READ_RESULT_REQUEST
    result_record: ResultRecord


class DeleteResultResponse(_Frozen):
    operation: Literal[Operation.DELETE_RESULT_RESPONSE] = Operation.DELETE_RESULT_RESPONSE


class ReplaceResultResponse(_Frozen):
    operation: Literal[Operation.REPLACE_RESULT_RESPONSE] = Operation.REPLACE_RESULT_RESPONSE


class ReadResultResponse(_Frozen):
    operation: Literal[Operation.READ_RESULT_RESPONSE] = Operation.READ_RESULT_RESPONSE
    result: Optional[Result] = None


BodyItem = Annotated[
    Union[
        DeleteResultRequest,
        DeleteResultResponse,
        ReplaceResultRequest,
        ReplaceResultResponse,
        ReadResultRequest,
        ReadResultResponse,
    ],
    Field(discriminator="operation"),
]


class Envelope(_Frozen):
    """An imsx_POXEnvelope. Header and body may be missing on inbound messages."""

    header: Optional[HeaderInfo] = None
    body: Optional[BodyItem] = None

    @classmethod
    def request(cls, body: BodyItem) -> Envelope:
        """Wrap a request body with a fresh message identifier."""
        return cls(header=RequestHeaderInfo(), body=body)


# ─── Call results ────────────────────────────────────────────────────────────


class BasicResult(_Frozen):
    """Outcome of a delete or replace call."""

    is_success: bool
    message: str = ""


class LisResult(_Frozen):
    """Outcome of a read call. ``score`` is None when ungraded or not numeric."""

    is_valid: bool
    score: Optional[float] = None
    message: str = ""
