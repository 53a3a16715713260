"""XML codec for imsx_POXEnvelope messages.

The same envelope structure travels under two root element names:
``imsx_POXEnvelopeRequest`` outbound and ``imsx_POXEnvelopeResponse`` inbound.
One codec is configured per root name; both are module-level and immutable.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from lxml import etree
from pydantic import ValidationError

from .models import (
    BodyItem,
    Envelope,
    HeaderInfo,
    Operation,
    Result,
    ResultRecord,
    ResultScore,
)

logger = logging.getLogger(__name__)

IMSX_NAMESPACE = "http://www.imsglobal.org/services/ltiv1p1/xsd/imsoms_v1p0"
REQUEST_ROOT = "imsx_POXEnvelopeRequest"
RESPONSE_ROOT = "imsx_POXEnvelopeResponse"

_NSMAP = {None: IMSX_NAMESPACE}


class EnvelopeError(ValueError):
    """Payload is not an outcomes envelope under the codec's root name."""


def _q(name: str) -> str:
    return f"{{{IMSX_NAMESPACE}}}{name}"


def _make_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


# ─── Writing ─────────────────────────────────────────────────────────────────


def _add_text(parent: etree._Element, name: str, value: Optional[str]) -> None:
    if value is None:
        return
    etree.SubElement(parent, _q(name)).text = value


def _write_result(parent: etree._Element, result: Optional[Result]) -> None:
    if result is None:
        return
    result_el = etree.SubElement(parent, _q("result"))
    if result.result_score is not None:
        score_el = etree.SubElement(result_el, _q("resultScore"))
        _add_text(score_el, "language", result.result_score.language)
        _add_text(score_el, "textString", result.result_score.text_string)


def _write_header(parent: etree._Element, header: HeaderInfo) -> None:
    header_el = etree.SubElement(parent, _q("imsx_POXHeader"))
    if header.kind == "request":
        info = etree.SubElement(header_el, _q("imsx_POXRequestHeaderInfo"))
        _add_text(info, "imsx_version", header.version)
        _add_text(info, "imsx_messageIdentifier", header.message_identifier)
        return

    info = etree.SubElement(header_el, _q("imsx_POXResponseHeaderInfo"))
    _add_text(info, "imsx_version", header.version)
    _add_text(info, "imsx_messageIdentifier", header.message_identifier)
    status = header.status_info
    if status is not None:
        status_el = etree.SubElement(info, _q("imsx_statusInfo"))
        _add_text(status_el, "imsx_codeMajor", status.code_major.value)
        _add_text(status_el, "imsx_severity", status.severity.value)
        _add_text(status_el, "imsx_description", status.description)
        _add_text(status_el, "imsx_messageRefIdentifier", status.message_ref_identifier)
        _add_text(status_el, "imsx_operationRefIdentifier", status.operation_ref_identifier)


def _write_body(parent: etree._Element, body: BodyItem) -> None:
    body_el = etree.SubElement(parent, _q("imsx_POXBody"))
    item = etree.SubElement(body_el, _q(body.operation.value))
    if body.operation.is_request:
        record_el = etree.SubElement(item, _q("resultRecord"))
        guid_el = etree.SubElement(record_el, _q("sourcedGUID"))
        _add_text(guid_el, "sourcedId", body.result_record.sourced_id)
        _write_result(record_el, body.result_record.result)
    elif body.operation is Operation.READ_RESULT_RESPONSE:
        _write_result(item, body.result)


# ─── Reading ─────────────────────────────────────────────────────────────────


def _child(parent: Optional[etree._Element], name: str) -> Optional[etree._Element]:
    if parent is None:
        return None
    return parent.find(_q(name))


def _text(parent: Optional[etree._Element], name: str) -> Optional[str]:
    el = _child(parent, name)
    if el is None:
        return None
    return el.text or ""


def _token(parent: Optional[etree._Element], name: str) -> Optional[str]:
    text = _text(parent, name)
    return text.strip() if text is not None else None


def _read_result(parent: Optional[etree._Element]) -> Optional[Result]:
    result_el = _child(parent, "result")
    if result_el is None:
        return None
    score_el = _child(result_el, "resultScore")
    if score_el is None:
        return Result()
    score = {"text_string": _text(score_el, "textString")}
    language = _token(score_el, "language")
    if language is not None:
        score["language"] = language
    return Result(result_score=ResultScore(**score))


def _read_header(root: etree._Element) -> Optional[dict]:
    header_el = _child(root, "imsx_POXHeader")
    request_info = _child(header_el, "imsx_POXRequestHeaderInfo")
    if request_info is not None:
        return {
            "kind": "request",
            "version": _token(request_info, "imsx_version") or "",
            "message_identifier": _text(request_info, "imsx_messageIdentifier") or "",
        }

    response_info = _child(header_el, "imsx_POXResponseHeaderInfo")
    if response_info is None:
        return None
    header = {
        "kind": "response",
        "version": _token(response_info, "imsx_version") or "",
        "message_identifier": _text(response_info, "imsx_messageIdentifier") or "",
    }
    status_el = _child(response_info, "imsx_statusInfo")
    if _token(status_el, "imsx_codeMajor"):
        status = {
            "code_major": _token(status_el, "imsx_codeMajor"),
            "description": _text(status_el, "imsx_description") or "",
            "message_ref_identifier": _text(status_el, "imsx_messageRefIdentifier"),
            "operation_ref_identifier": _text(status_el, "imsx_operationRefIdentifier"),
        }
        severity = _token(status_el, "imsx_severity")
        if severity:
            status["severity"] = severity
        header["status_info"] = status
    return header


def _read_body(root: etree._Element) -> Optional[dict]:
    body_el = _child(root, "imsx_POXBody")
    if body_el is None:
        return None
    for item in body_el:
        if not isinstance(item.tag, str):
            continue
        local = etree.QName(item).localname
        try:
            operation = Operation(local)
        except ValueError:
            continue
        if operation.is_request:
            record_el = _child(item, "resultRecord")
            if record_el is None:
                raise EnvelopeError(f"{local} without resultRecord")
            record = ResultRecord(
                sourced_id=_text(_child(record_el, "sourcedGUID"), "sourcedId") or "",
                result=_read_result(record_el),
            )
            return {"operation": operation, "result_record": record}
        if operation is Operation.READ_RESULT_RESPONSE:
            return {"operation": operation, "result": _read_result(item)}
        return {"operation": operation}
    return None


class EnvelopeCodec:
    """Serializes and parses envelopes under one root element name."""

    def __init__(self, root_name: str):
        self._root_name = root_name
        self._root_tag = _q(root_name)

    @property
    def root_name(self) -> str:
        return self._root_name

    def __repr__(self) -> str:
        return f"EnvelopeCodec({self._root_name!r})"

    def serialize(self, envelope: Envelope) -> bytes:
        """Render the envelope as a UTF-8 XML document."""
        root = etree.Element(self._root_tag, nsmap=_NSMAP)
        if envelope.header is not None:
            _write_header(root, envelope.header)
        if envelope.body is not None:
            _write_body(root, envelope.body)
        return etree.tostring(root, xml_declaration=True, encoding="UTF-8")

    def deserialize(self, data: bytes) -> Envelope:
        """Parse XML bytes into an Envelope.

        Raises:
            EnvelopeError: the bytes are not XML, or the root element is not
                this codec's root in the outcomes namespace, or a known
                element carries an invalid value.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not data or not data.strip():
            raise EnvelopeError("empty document")
        try:
            root = etree.fromstring(data, parser=_make_parser())
        except (etree.XMLSyntaxError, ValueError) as exc:
            raise EnvelopeError(f"not well-formed XML: {exc}") from exc

        if root.tag != self._root_tag:
            raise EnvelopeError(f"unexpected root element {root.tag!r}, expected {self._root_tag!r}")

        try:
            return Envelope.model_validate({"header": _read_header(root), "body": _read_body(root)})
        except ValidationError as exc:
            raise EnvelopeError(f"invalid envelope content: {exc.error_count()} error(s)") from exc


REQUEST_CODEC = EnvelopeCodec(REQUEST_ROOT)
RESPONSE_CODEC = EnvelopeCodec(RESPONSE_ROOT)


def serialize(envelope: Envelope) -> bytes:
    """Serialize an outbound envelope with the request root name."""
    return REQUEST_CODEC.serialize(envelope)


def parse_envelope(data: bytes) -> Optional[Envelope]:
    """Parse any outcomes payload, request-rooted first. None if neither fits."""
    for codec in (REQUEST_CODEC, RESPONSE_CODEC):
        try:
            return codec.deserialize(data)
        except EnvelopeError as exc:
            logger.debug("%r rejected payload: %s", codec, exc)
    return None


def is_outcomes_payload(stream: BinaryIO) -> bool:
    """Return True if the stream holds a request or response envelope.

    The stream is read from its current position and rewound to it
    afterwards, so the same payload can be handed to the real handler.
    """
    start = stream.tell() if stream.seekable() else None
    try:
        data = stream.read()
    finally:
        if start is not None:
            stream.seek(start)
    return parse_envelope(data or b"") is not None
