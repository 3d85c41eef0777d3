"""Tests for newsfeed.schemas.news."""

import pytest
from pydantic import ValidationError

from newsfeed.schemas.news import CompleteEvent, NewsRequest, normalize_interests, to_sse


class TestNewsRequest:
    def test_blank_interests_dropped(self) -> None:
        request = NewsRequest(interests=["Tech", "  ", ""], userId=" user-1 ")

        assert request.interests == ["Tech"]
        assert request.user_id == "user-1"
        assert request.validation_error() is None

    @pytest.mark.parametrize("interests", [["Tech", 5], ["Tech", None], ["Tech", {"name": "Art"}]])
    def test_non_string_interests_rejected(self, interests) -> None:
        with pytest.raises(ValidationError):
            NewsRequest(interests=interests, userId="user-1")

    def test_validation_messages(self) -> None:
        assert NewsRequest(interests=[], userId="user-1").validation_error() == "Interests are required"
        assert NewsRequest(interests=["Tech"]).validation_error() == "User ID is required"


def test_normalize_interests() -> None:
    assert normalize_interests(["b", " a ", "b", ""]) == ["a", "b"]


def test_sse_frame_uses_camel_case() -> None:
    frame = to_sse(CompleteEvent(total_articles=3, from_cache=True))

    assert frame == 'data: {"type":"complete","totalArticles":3,"fromCache":true}\n\n'
