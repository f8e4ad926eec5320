"""
Unit tests for event validation rules.

Covers date range checks, poll shape rules, poll state reset and
participant helpers.
"""

from datetime import datetime, timedelta

import pytest

from backend.src.services.event_validation import (
    dedupe_participants,
    default_participants,
    reset_poll_options,
    validate_date_range,
    validate_poll_shape,
)
from backend.src.services.exceptions import (
    DirectoryUnavailableError,
    InvalidDateRangeError,
    InvalidPollError,
)


START = datetime(2026, 3, 2, 9, 0)


class TestValidateDateRange:
    """Tests for validate_date_range."""

    def test_accepts_equal_dates(self):
        validate_date_range(START, START)

    def test_accepts_end_after_start(self):
        validate_date_range(START, START + timedelta(hours=1))

    def test_accepts_missing_end(self):
        validate_date_range(START, None)

    def test_rejects_end_before_start(self):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            validate_date_range(START, START - timedelta(minutes=1))

        assert exc_info.value.field == "end_date"
        assert exc_info.value.start == START


class TestValidatePollShape:
    """Tests for validate_poll_shape."""

    def test_accepts_valid_poll(self, sample_poll):
        validate_poll_shape(sample_poll)

    def test_rejects_empty_options(self):
        with pytest.raises(InvalidPollError, match="at least one option"):
            validate_poll_shape({"question": "Lunch?", "options": []})

    def test_rejects_missing_options(self):
        with pytest.raises(InvalidPollError):
            validate_poll_shape({"question": "Lunch?"})

    def test_rejects_duplicate_labels(self):
        poll = {"question": "Lunch?", "options": [{"label": "A"}, {"label": "A"}]}
        with pytest.raises(InvalidPollError, match="Duplicate"):
            validate_poll_shape(poll)

    def test_duplicate_check_ignores_surrounding_whitespace(self):
        poll = {"question": "Lunch?", "options": [{"label": "A"}, {"label": " A "}]}
        with pytest.raises(InvalidPollError):
            validate_poll_shape(poll)

    def test_rejects_blank_label(self):
        poll = {"question": "Lunch?", "options": [{"label": "  "}]}
        with pytest.raises(InvalidPollError, match="labels"):
            validate_poll_shape(poll)

    def test_rejects_blank_question(self):
        with pytest.raises(InvalidPollError, match="question"):
            validate_poll_shape({"question": " ", "options": [{"label": "A"}]})

    def test_error_is_attributed_to_poll_field(self):
        with pytest.raises(InvalidPollError) as exc_info:
            validate_poll_shape({"question": "Q", "options": []})
        assert exc_info.value.field == "poll"


class TestResetPollOptions:
    """Tests for reset_poll_options."""

    def test_discards_caller_vote_state(self):
        options = [
            {"label": "A", "votes": 5, "voters": ["x"]},
            {"label": "B", "votes": 2, "voters": ["y", "z"]},
        ]

        reset = reset_poll_options(options)

        assert reset == [
            {"label": "A", "votes": 0, "voters": []},
            {"label": "B", "votes": 0, "voters": []},
        ]

    def test_strips_labels_and_keeps_order(self):
        reset = reset_poll_options([{"label": " B "}, {"label": "A"}])
        assert [o["label"] for o in reset] == ["B", "A"]


class TestParticipants:
    """Tests for participant helpers."""

    def test_default_participants_uses_directory(self, directory):
        assert default_participants(directory) == ["u1", "u2"]

    def test_default_participants_propagates_directory_failure(self, mocker):
        failing = mocker.Mock()
        failing.list_active_users.side_effect = DirectoryUnavailableError("down")

        with pytest.raises(DirectoryUnavailableError):
            default_participants(failing)

    def test_dedupe_keeps_first_occurrence(self):
        assert dedupe_participants(["u2", "u1", "u2", "u3", "u1"]) == ["u2", "u1", "u3"]
