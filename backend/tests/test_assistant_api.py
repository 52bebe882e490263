"""
Prompt analysis, tag suggestion and feedback endpoint tests.

The chat model and the email API are replaced with doubles; no network.

Run with: pytest backend/tests/test_assistant_api.py -v
"""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from langchain_core.messages import AIMessage, HumanMessage

from app.main import app
from app.services.exceptions import ConfigurationError, UpstreamServiceError
from app.services.feedback_mailer import FeedbackMailer, get_feedback_mailer
from app.services.prompt_assistant import (
    PromptAssistant, TAG_EXAMPLE_ANSWER, get_prompt_assistant, parse_tag_list
)


def fake_model(reply="ok", error=None):
    model = MagicMock()
    if error:
        model.invoke.side_effect = error
    else:
        model.invoke.return_value = AIMessage(content=reply)
    return model


# =============================================================================
# PromptAssistant
# =============================================================================

class TestPromptAssistant:

    def test_parse_tag_list_trims_and_drops_empty(self):
        assert parse_tag_list(" seo, , Blog post ,email,") == ["seo", "Blog post", "email"]

    def test_suggest_tags_sends_seeded_history(self):
        model = fake_model("marketing, email, subject line")
        factory = MagicMock(return_value=model)

        tags = PromptAssistant(model_factory=factory).suggest_tags("Write a subject line")

        assert tags == ["marketing", "email", "subject line"]
        factory.assert_called_once_with(0.3, 100)
        messages = model.invoke.call_args.args[0]
        assert [type(m) for m in messages] == [HumanMessage, AIMessage, HumanMessage]
        assert messages[1].content == TAG_EXAMPLE_ANSWER
        assert messages[2].content == "Write a subject line"

    def test_analyze_prompt_is_single_turn(self):
        model = fake_model("Clear and specific.")

        analysis = PromptAssistant(model_factory=lambda t, m: model).analyze_prompt("Summarize this")

        assert analysis == "Clear and specific."
        messages = model.invoke.call_args.args[0]
        assert len(messages) == 1
        assert 'Original Prompt: "Summarize this"' in messages[0].content

    def test_model_failure_becomes_upstream_error(self):
        model = fake_model(error=RuntimeError("quota"))

        with pytest.raises(UpstreamServiceError):
            PromptAssistant(model_factory=lambda t, m: model).analyze_prompt("x")

    def test_missing_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            PromptAssistant().analyze_prompt("x")


# =============================================================================
# FeedbackMailer
# =============================================================================

class TestFeedbackMailer:

    def test_posts_plain_text_email(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email_1"})

        mailer = FeedbackMailer(transport=httpx.MockTransport(handler))
        mailer.config["api_key"] = "re_test"

        asyncio.run(mailer.send("Love the folder tree"))

        assert seen["url"] == "https://api.resend.com/emails"
        assert seen["auth"] == "Bearer re_test"
        assert seen["body"]["subject"] == "New Feedback Submission"
        assert seen["body"]["text"] == "Love the folder tree"
        assert seen["body"]["from"] == "onboarding@resend.dev"

    def test_http_error_becomes_upstream_error(self):
        mailer = FeedbackMailer(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        mailer.config["api_key"] = "re_test"

        with pytest.raises(UpstreamServiceError):
            asyncio.run(mailer.send("hello"))

    def test_missing_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            asyncio.run(FeedbackMailer().send("hello"))


# =============================================================================
# /api endpoints
# =============================================================================

@pytest.fixture
def assistant(client):
    double = MagicMock()
    app.dependency_overrides[get_prompt_assistant] = lambda: double
    return double


@pytest.fixture
def mailer(client):
    double = MagicMock()
    double.send = AsyncMock()
    app.dependency_overrides[get_feedback_mailer] = lambda: double
    return double


class TestAnalyzePromptEndpoint:

    def test_returns_analysis(self, client, assistant):
        assistant.analyze_prompt.return_value = "Be more specific."

        resp = client.post("/api/analyze-prompt", json={"prompt": "Write something"})

        assert resp.status_code == 200
        assert resp.json() == {"analysis": "Be more specific."}
        assistant.analyze_prompt.assert_called_once_with("Write something")

    @pytest.mark.parametrize("body", [{}, {"prompt": ""}])
    def test_missing_prompt_is_400(self, client, assistant, body):
        resp = client.post("/api/analyze-prompt", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"detail": "Prompt is required"}
        assistant.analyze_prompt.assert_not_called()

    def test_missing_credential_is_500_with_message(self, client):
        resp = client.post("/api/analyze-prompt", json={"prompt": "x"})

        assert resp.status_code == 500
        assert "OPENAI_API_KEY" in resp.json()["detail"]

    def test_upstream_failure_is_generic_500(self, client, assistant):
        assistant.analyze_prompt.side_effect = UpstreamServiceError("analyze_prompt request failed")

        resp = client.post("/api/analyze-prompt", json={"prompt": "x"})

        assert resp.status_code == 500
        assert resp.json() == {"detail": "Internal Server Error"}


class TestSuggestTagsEndpoint:

    def test_returns_tags(self, client, assistant):
        assistant.suggest_tags.return_value = ["seo", "blog"]

        resp = client.post("/api/suggest-tags", json={"promptContent": "Write a blog intro"})

        assert resp.status_code == 200
        assert resp.json() == {"tags": ["seo", "blog"]}
        assistant.suggest_tags.assert_called_once_with("Write a blog intro")

    def test_missing_content_is_400(self, client, assistant):
        resp = client.post("/api/suggest-tags", json={})

        assert resp.status_code == 400

    def test_upstream_failure_is_500(self, client, assistant):
        assistant.suggest_tags.side_effect = UpstreamServiceError("suggest_tags request failed")

        resp = client.post("/api/suggest-tags", json={"promptContent": "x"})

        assert resp.status_code == 500


class TestFeedbackEndpoint:

    def test_sends_feedback(self, client, mailer):
        resp = client.post("/api/feedback", json={"message": "Great app"})

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        mailer.send.assert_awaited_once_with("Great app")

    def test_missing_message_is_400(self, client, mailer):
        resp = client.post("/api/feedback", json={"message": ""})

        assert resp.status_code == 400
        assert resp.json() == {"detail": "Message is required"}

    def test_missing_credential_is_500(self, client):
        resp = client.post("/api/feedback", json={"message": "hi"})

        assert resp.status_code == 500
        assert "RESEND_API_KEY" in resp.json()["detail"]

    def test_send_failure_is_500(self, client, mailer):
        mailer.send.side_effect = UpstreamServiceError("Failed to send feedback")

        resp = client.post("/api/feedback", json={"message": "hi"})

        assert resp.status_code == 500
        assert resp.json() == {"detail": "Failed to send feedback"}
