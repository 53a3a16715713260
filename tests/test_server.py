import asyncio

import pytest

from lti_outcomes import server
from lti_outcomes.core.models import BasicResult, LisResult


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("LTI_CONSUMER_KEY", "env-key")
    monkeypatch.setenv("LTI_CONSUMER_SECRET", "env-secret")
    monkeypatch.setenv("LTI_OUTCOME_SERVICE_URL", "https://lms.example.edu/outcomes")


@pytest.fixture
def calls(monkeypatch):
    recorded = []

    async def fake_post(url, key, secret, sourced_id, score):
        recorded.append(("post", url, key, secret, sourced_id, score))
        return BasicResult(is_success=True, message="Score saved")

    async def fake_read(url, key, secret, sourced_id):
        recorded.append(("read", url, key, secret, sourced_id))
        return LisResult(is_valid=True, score=0.8)

    async def fake_delete(url, key, secret, sourced_id):
        recorded.append(("delete", url, key, secret, sourced_id))
        return BasicResult(is_success=False, message="Result not found")

    monkeypatch.setattr(server.outcomes, "post_score", fake_post)
    monkeypatch.setattr(server.outcomes, "read_score", fake_read)
    monkeypatch.setattr(server.outcomes, "delete_score", fake_delete)
    return recorded


def test_tools_are_registered():
    names = {tool.name for tool in asyncio.run(server.mcp.list_tools())}
    assert {"lti_post_score", "lti_read_score", "lti_delete_score"} <= names


def test_post_score_uses_environment(env, calls):
    result = asyncio.run(server.lti_post_score("sid-1", 0.5))

    assert calls == [("post", "https://lms.example.edu/outcomes", "env-key", "env-secret", "sid-1", 0.5)]
    assert result["is_success"] is True
    assert result["summary"] == "Score 0.5 for sid-1 recorded. Score saved"


def test_arguments_override_environment(env, calls):
    asyncio.run(server.lti_read_score("sid-2", service_url="https://other.example/o", consumer_key="k", consumer_secret="s"))
    assert calls == [("read", "https://other.example/o", "k", "s", "sid-2")]


def test_read_score_summary(env, calls):
    result = asyncio.run(server.lti_read_score("sid-3"))
    assert result["score"] == 0.8
    assert result["summary"] == "Score for sid-3 is 0.8."


def test_delete_score_failure_summary(env, calls):
    result = asyncio.run(server.lti_delete_score("sid-4"))
    assert result["is_success"] is False
    assert result["summary"] == "Score for sid-4 not deleted. Result not found"


def test_missing_credentials(monkeypatch, calls):
    monkeypatch.delenv("LTI_CONSUMER_KEY", raising=False)
    monkeypatch.delenv("LTI_CONSUMER_SECRET", raising=False)
    with pytest.raises(ValueError, match="LTI_CONSUMER_KEY"):
        asyncio.run(server.lti_delete_score("sid-5", service_url="https://lms.example.edu/outcomes"))
    assert calls == []


def test_missing_service_url(monkeypatch, env, calls):
    monkeypatch.delenv("LTI_OUTCOME_SERVICE_URL")
    with pytest.raises(ValueError, match="LTI_OUTCOME_SERVICE_URL"):
        asyncio.run(server.lti_read_score("sid-6"))
