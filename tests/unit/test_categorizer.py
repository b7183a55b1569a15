"""Unit tests for the categorizer."""

import json
from datetime import timedelta

import pytest

from inbox_rank.inference import InferenceResult
from inbox_rank.models import Category, EstimatedTime, Priority
from inbox_rank.triage.categorizer import Categorizer, clamp_confidence
from inbox_rank.triage.prompt import SYSTEM_PROMPT, build_categorization_prompt


def _reply(**data):
    return lambda prompt: data


class TestCategorizeItem:
    """Test suite for Categorizer.categorize_item."""

    @pytest.mark.asyncio
    async def test_success_action_required_quick_win(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test a valid response produces a scored quick win."""
        client = fake_inference(
            _reply(
                category="Action-Required",
                confidence=8,
                reasoning="Direct approval request",
                suggestedAction="Approve it",
            )
        )
        categorizer = Categorizer(client, mock_settings, now=fixed_now)
        item = make_item(subject="Quick question: can you approve this?", body_preview="")

        result = await categorizer.categorize_item(item, is_vip=False)

        assert result.item_id == item.id
        assert result.category is Category.ACTION_REQUIRED
        assert result.confidence == 8
        assert result.quick_win is True
        assert result.quick_win_reason == "Simple yes/no decision"
        assert result.estimated_time is EstimatedTime.TWO_MINUTES
        assert result.reasoning == "Direct approval request"
        assert result.suggested_action == "Approve it"
        assert result.scoring.base_score == 60
        assert result.priority is Priority.P1

    @pytest.mark.asyncio
    async def test_quick_win_suppressed_for_other_categories(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test that a detected quick win is dropped unless the item is actionable."""
        client = fake_inference(_reply(category="FYI", confidence=6))
        categorizer = Categorizer(client, mock_settings, now=fixed_now)
        item = make_item(subject="Quick question: can you approve this?", body_preview="")

        result = await categorizer.categorize_item(item, is_vip=False)

        assert result.category is Category.FYI
        assert result.quick_win is False
        assert result.quick_win_reason is None
        assert result.estimated_time is EstimatedTime.TWO_MINUTES

    @pytest.mark.asyncio
    async def test_unknown_category_coerced_to_fyi(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test that an invented category never leaks into the result."""
        client = fake_inference(_reply(category="Super-Urgent", confidence=9))
        categorizer = Categorizer(client, mock_settings, now=fixed_now)

        result = await categorizer.categorize_item(make_item(), is_vip=False)

        assert result.category is Category.FYI
        assert result.scoring.base_score == 20
        assert result.confidence == 9

    @pytest.mark.asyncio
    async def test_defaults_for_missing_fields(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test defaults when the model omits optional fields."""
        client = fake_inference(_reply(category="Delegatable"))
        categorizer = Categorizer(client, mock_settings, now=fixed_now)

        result = await categorizer.categorize_item(make_item(), is_vip=False)

        assert result.confidence == 5
        assert result.reasoning == "No reasoning provided"
        assert result.suggested_action == "Review and respond"
        assert result.priority is Priority.P2

    @pytest.mark.asyncio
    async def test_fallback_on_failed_inference(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test that a failed call yields a deterministic FYI result."""
        client = fake_inference(lambda prompt: InferenceResult.failed("inference timed out after 2s"))
        categorizer = Categorizer(client, mock_settings, now=fixed_now)
        item = make_item(
            subject="Got it",
            metadata={"dueDate": (fixed_now - timedelta(days=2)).isoformat()},
        )

        result = await categorizer.categorize_item(item, is_vip=True)

        assert result.category is Category.FYI
        assert result.confidence == 1
        assert result.quick_win is False
        assert result.quick_win_reason is None
        assert result.suggested_action == "Review manually"
        assert "inference timed out" in result.reasoning
        assert result.reasoning.startswith("Error during categorization:")
        assert result.scoring.total_score == 20 + 30 + 25
        assert result.priority is Priority.P1

    @pytest.mark.asyncio
    async def test_fallback_when_client_raises(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test that exceptions from the client are absorbed."""

        def boom(prompt: str):
            raise RuntimeError("connection reset")

        categorizer = Categorizer(fake_inference(boom), mock_settings, now=fixed_now)

        result = await categorizer.categorize_item(make_item(), is_vip=False)

        assert result.category is Category.FYI
        assert result.confidence == 1
        assert "connection reset" in result.reasoning

    @pytest.mark.asyncio
    async def test_fallback_when_success_without_data(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test that a success flag without a JSON object is treated as failure."""
        client = fake_inference(lambda prompt: InferenceResult(success=True, data=None, raw="hello"))
        categorizer = Categorizer(client, mock_settings, now=fixed_now)

        result = await categorizer.categorize_item(make_item(), is_vip=False)

        assert result.confidence == 1
        assert result.reasoning == "Error during categorization: No JSON found in AI response"

    @pytest.mark.asyncio
    async def test_inference_call_contract(
        self, make_item, fake_inference, mock_settings, fixed_now
    ) -> None:
        """Test system prompt, JSON mode and timeout passed to the client."""
        client = fake_inference()
        categorizer = Categorizer(client, mock_settings, now=fixed_now)

        await categorizer.categorize_item(make_item(), is_vip=False, verbose=True)

        assert len(client.calls) == 1
        call = client.calls[0]
        assert call["system_prompt"] == SYSTEM_PROMPT
        assert call["response_format"] == "json"
        assert call["timeout"] == mock_settings.inference_timeout


class TestClampConfidence:
    """Test suite for clamp_confidence."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (7, 7),
            (42, 10),
            (-3, 1),
            (0, 1),
            (6.6, 7),
            ("4", 4),
            ("high", 5),
            (None, 5),
            (True, 5),
            (float("nan"), 5),
            (float("inf"), 5),
            (float("-inf"), 5),
            ("inf", 5),
            (json.loads("1e999"), 5),
            (10**400, 5),
        ],
    )
    def test_clamp(self, raw, expected) -> None:
        """Test clamping into [1, 10] with a default of 5."""
        assert clamp_confidence(raw) == expected


class TestBuildPrompt:
    """Test suite for build_categorization_prompt."""

    def test_email_prompt(self, make_item) -> None:
        """Test the basic item details."""
        item = make_item(subject="Budget sign-off", body_preview="b" * 800)

        prompt = build_categorization_prompt(item, is_vip=True)

        assert "- Source: email-gmail" in prompt
        assert "- From: Alex Doe <alex@example.com>" in prompt
        assert "- VIP: Yes" in prompt
        assert "- Subject: Budget sign-off" in prompt
        assert "b" * 500 in prompt
        assert "b" * 501 not in prompt
        assert "(no thread context)" in prompt

    def test_helpdesk_fields(self, make_item) -> None:
        """Test status, priority and due date for ticket sources."""
        item = make_item(
            source="sdp-ticket",
            item_type="ticket",
            metadata={"status": "Open", "priority": "High", "dueDate": "2026-10-20"},
        )

        prompt = build_categorization_prompt(item, is_vip=False)

        assert "- Status: Open" in prompt
        assert "- Priority: High" in prompt
        assert "- Due Date: 2026-10-20" in prompt
        assert "- Type: ticket" in prompt

    def test_slack_fields_and_thread_tail(self, make_item) -> None:
        """Test channel info and that only the last thread messages are included."""
        item = make_item(
            source="slack",
            metadata={"channelName": "#ops", "channelType": "channel"},
            thread_context=[
                {"sender": {"name": f"user{i}"}, "body": f"message {i}"} for i in range(5)
            ],
        )

        prompt = build_categorization_prompt(item, is_vip=False, thread_limit=3)

        assert "- Channel: #ops" in prompt
        assert "- Channel Type: channel" in prompt
        assert "- user1: message 1" not in prompt
        assert "- user2: message 2" in prompt
        assert "- user4: message 4" in prompt
        assert "Status:" not in prompt
