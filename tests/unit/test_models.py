"""Unit tests for data models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from inbox_rank.models import (
    CategorizationResult,
    Category,
    EstimatedTime,
    Item,
    ItemSource,
    Priority,
    ScoringResult,
)


class TestItem:
    """Test suite for Item model."""

    def test_item_accepts_camel_case_aliases(self) -> None:
        """Test building an Item from adapter-style camelCase data."""
        item = Item.model_validate(
            {
                "id": "slack:C1-123",
                "source": "slack",
                "sourceId": "C1-123",
                "itemType": "message",
                "timestamp": "2026-10-19T08:00:00Z",
                "from": {"name": "Sam", "address": "@sam", "userId": "U42"},
                "bodyPreview": "ping",
                "threadId": None,
                "threadContext": None,
                "metadata": None,
                "readStatus": "unread",
            }
        )

        assert item.source is ItemSource.SLACK
        assert item.source_id == "C1-123"
        assert item.sender.user_id == "U42"
        assert item.thread_context == []
        assert item.metadata == {}
        assert item.timestamp.tzinfo is not None

    def test_naive_timestamp_is_utc(self, make_item) -> None:
        """Test that naive datetimes are interpreted as UTC."""
        item = make_item(timestamp=datetime(2026, 1, 1, 9, 30))

        assert item.timestamp == datetime(2026, 1, 1, 9, 30, tzinfo=timezone.utc)

    def test_item_is_frozen(self, make_item) -> None:
        """Test that items cannot be mutated."""
        item = make_item()

        with pytest.raises(ValidationError):
            item.subject = "changed"

    def test_unknown_source_rejected(self, make_item) -> None:
        """Test that sources outside the enum are rejected."""
        with pytest.raises(ValidationError):
            make_item(source="fax")


class TestCategory:
    """Test suite for Category parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Action-Required", Category.ACTION_REQUIRED),
            ("Delegatable", Category.DELEGATABLE),
            ("Archive", Category.ARCHIVE),
            ("action-required", Category.FYI),
            ("Urgent", Category.FYI),
            (None, Category.FYI),
            (7, Category.FYI),
        ],
    )
    def test_parse(self, raw, expected) -> None:
        """Test that only exact category values survive parsing."""
        assert Category.parse(raw) is expected


class TestCategorizationResult:
    """Test suite for CategorizationResult model."""

    def _scoring(self) -> ScoringResult:
        return ScoringResult(base_score=20, modifiers=[], total_score=20, priority=Priority.P3)

    def test_result_serializes_enum_values(self) -> None:
        """Test JSON-mode dumps use wire values."""
        result = CategorizationResult(
            item_id="x",
            category=Category.FYI,
            priority=Priority.P3,
            confidence=4,
            estimated_time=EstimatedTime.FIVE_MINUTES,
            reasoning="Newsletter",
            suggested_action="Archive",
            scoring=self._scoring(),
        )

        dumped = result.model_dump(mode="json")
        assert dumped["category"] == "FYI"
        assert dumped["estimated_time"] == "5min"
        assert dumped["scoring"]["priority"] == "P3"

    def test_confidence_validation(self) -> None:
        """Test that confidence outside 1-10 is rejected."""
        with pytest.raises(ValidationError):
            CategorizationResult(
                item_id="x",
                category=Category.SPAM,
                priority=Priority.P3,
                confidence=11,
                estimated_time=EstimatedTime.ONE_MINUTE,
                reasoning="Test",
                suggested_action="Delete",
                scoring=self._scoring(),
            )
