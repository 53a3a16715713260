"""LTI Outcomes MCP Server.

FastMCP server exposing the Basic Outcomes operations as tools.
Run: lti-outcomes-mcp
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .core.clients import outcomes

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)
WRITE = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=True, openWorldHint=True)
DESTRUCTIVE = ToolAnnotations(readOnlyHint=False, destructiveHint=True, idempotentHint=True, openWorldHint=True)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Configure logging for the server process."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    logger.info("LTI Outcomes server started")
    yield


mcp = FastMCP(
    "LTI Outcomes",
    instructions="Report, read and delete learner scores on an LTI 1.1 platform through the Basic Outcomes service.",
    lifespan=lifespan,
)


def _credentials(consumer_key: Optional[str], consumer_secret: Optional[str]) -> tuple[str, str]:
    key = consumer_key or os.environ.get("LTI_CONSUMER_KEY", "")
    secret = consumer_secret or os.environ.get("LTI_CONSUMER_SECRET", "")
    if not key or not secret:
        raise ValueError("An OAuth consumer key and secret are required. Pass them or set LTI_CONSUMER_KEY and LTI_CONSUMER_SECRET.")
    return key, secret


def _service_url(service_url: Optional[str]) -> str:
    url = service_url or os.environ.get("LTI_OUTCOME_SERVICE_URL", "")
    if not url:
        raise ValueError("An outcome service URL is required. Pass service_url or set LTI_OUTCOME_SERVICE_URL.")
    return url


# ─── Tool 1: Post Score ──────────────────────────────────────────────────────


@mcp.tool(annotations=WRITE)
async def lti_post_score(
    sourced_id: str,
    score: float,
    service_url: Optional[str] = None,
    consumer_key: Optional[str] = None,
    consumer_secret: Optional[str] = None,
) -> dict:
    """Replace a learner's score in the platform gradebook.

    Args:
        sourced_id: The lis_result_sourcedid received at launch.
        score: Score between 0.0 and 1.0.
        service_url: The lis_outcome_service_url. Defaults to LTI_OUTCOME_SERVICE_URL.
        consumer_key: OAuth consumer key. Defaults to LTI_CONSUMER_KEY.
        consumer_secret: OAuth consumer secret. Defaults to LTI_CONSUMER_SECRET.
    """
    key, secret = _credentials(consumer_key, consumer_secret)
    result = await outcomes.post_score(_service_url(service_url), key, secret, sourced_id, score)
    verdict = "recorded" if result.is_success else "rejected"
    return {
        "title": "Post Score",
        "sourced_id": sourced_id,
        "score": score,
        "is_success": result.is_success,
        "message": result.message,
        "summary": f"Score {outcomes.format_score(score)} for {sourced_id} {verdict}. {result.message}".strip(),
    }


# ─── Tool 2: Read Score ──────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def lti_read_score(
    sourced_id: str,
    service_url: Optional[str] = None,
    consumer_key: Optional[str] = None,
    consumer_secret: Optional[str] = None,
) -> dict:
    """Read a learner's current score from the platform gradebook.

    Args:
        sourced_id: The lis_result_sourcedid received at launch.
        service_url: The lis_outcome_service_url. Defaults to LTI_OUTCOME_SERVICE_URL.
        consumer_key: OAuth consumer key. Defaults to LTI_CONSUMER_KEY.
        consumer_secret: OAuth consumer secret. Defaults to LTI_CONSUMER_SECRET.
    """
    key, secret = _credentials(consumer_key, consumer_secret)
    result = await outcomes.read_score(_service_url(service_url), key, secret, sourced_id)

    if not result.is_valid:
        summary = f"Could not read score for {sourced_id}: {result.message}"
    elif result.score is None:
        summary = f"No score recorded for {sourced_id}."
    else:
        summary = f"Score for {sourced_id} is {outcomes.format_score(result.score)}."

    return {
        "title": "Read Score",
        "sourced_id": sourced_id,
        "is_valid": result.is_valid,
        "score": result.score,
        "message": result.message,
        "summary": summary,
    }


# ─── Tool 3: Delete Score ────────────────────────────────────────────────────


@mcp.tool(annotations=DESTRUCTIVE)
async def lti_delete_score(
    sourced_id: str,
    service_url: Optional[str] = None,
    consumer_key: Optional[str] = None,
    consumer_secret: Optional[str] = None,
) -> dict:
    """Delete a learner's score from the platform gradebook.

    Args:
        sourced_id: The lis_result_sourcedid received at launch.
        service_url: The lis_outcome_service_url. Defaults to LTI_OUTCOME_SERVICE_URL.
        consumer_key: OAuth consumer key. Defaults to LTI_CONSUMER_KEY.
        consumer_secret: OAuth consumer secret. Defaults to LTI_CONSUMER_SECRET.
    """
    key, secret = _credentials(consumer_key, consumer_secret)
    result = await outcomes.delete_score(_service_url(service_url), key, secret, sourced_id)
    verdict = "deleted" if result.is_success else "not deleted"
    return {
        "title": "Delete Score",
        "sourced_id": sourced_id,
        "is_success": result.is_success,
        "message": result.message,
        "summary": f"Score for {sourced_id} {verdict}. {result.message}".strip(),
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
