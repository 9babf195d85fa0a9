"""Tests for templated lesson content, the mock voice pipeline and the user registry."""

import pytest

from shiksha.errors import ApiError, UpstreamServiceError
from shiksha.services.content import (
    generate_content, extract_subject, extract_topic, generate_title, TOPICS, TOPIC_NAMES,
)
from shiksha.services.users import UserRegistry
from shiksha.services.voice import process_voice_query, MOCK_TRANSCRIPTION, MOCK_CONFIDENCE


class TestContent:
    def test_addition_lesson(self):
        content = generate_content("ਮੈਂ ਗਣਿਤ ਵਿੱਚ ਜੋੜ ਸਿੱਖਣਾ ਚਾਹੁੰਦਾ ਹਾਂ")
        assert content["title"] == "ਗਣਿਤ ਵਿੱਚ ਜੋੜ ਦੀ ਸਿੱਖਿਆ"
        assert len(content["examples"]) == 2
        assert len(content["exercises"]) == 2
        assert content["difficulty"] == "beginner"
        assert content["estimatedTime"] == 10

    def test_level_changes_explanation_and_time(self):
        beginner = generate_content("ਜੋੜ", level="beginner")
        advanced = generate_content("ਜੋੜ", level="advanced")
        assert beginner["explanation"] != advanced["explanation"]
        assert advanced["estimatedTime"] == 30

    def test_unknown_topic_uses_general_templates(self):
        content = generate_content("ਇਤਿਹਾਸ ਬਾਰੇ ਦੱਸੋ")
        assert content["title"] == "ਇਤਿਹਾਸ ਦੀ ਸਿੱਖਿਆ"
        assert content["examples"] == []
        assert content["visualAids"]["images"] == ["/images/ਆਮ ਸਿੱਖਿਆ-visual.png"]

    def test_unknown_level_falls_back_on_minutes(self):
        assert generate_content("ਜੋੜ", level="expert")["estimatedTime"] == 15

    def test_non_text_query_is_upstream_error(self):
        with pytest.raises(UpstreamServiceError):
            generate_content(None)

    def test_extractors(self):
        assert extract_subject("ਵਿਗਿਆਨ") == {"punjabi": "ਵਿਗਿਆਨ", "english": "science"}
        assert extract_subject("hello")["english"] == "general"
        assert extract_topic("ਭਾਗ ਕਿਵੇਂ ਕਰੀਏ") == "ਭਾਗ"
        assert generate_title("ਆਮ ਸਿੱਖਿਆ", {"punjabi": "ਆਮ"}) == "ਆਮ ਦੀ ਸਿੱਖਿਆ"

    def test_catalog(self):
        assert len(TOPICS) == 6
        assert TOPIC_NAMES["addition"] == "ਜੋੜ"


class TestVoice:
    @pytest.mark.asyncio
    async def test_mock_pipeline(self):
        result = await process_voice_query(b"RIFF fake wav")
        assert result["transcription"] == MOCK_TRANSCRIPTION
        assert result["confidence"] == MOCK_CONFIDENCE
        assert result["entities"]["subjects"][0]["english"] == "mathematics"
        assert result["content"]["title"] == "ਗਣਿਤ ਦੀ ਸਿੱਖਿਆ"

    @pytest.mark.asyncio
    async def test_empty_audio(self):
        with pytest.raises(UpstreamServiceError):
            await process_voice_query(b"")


class TestUserRegistry:
    def test_register_defaults(self):
        users = UserRegistry()
        user = users.register("Simran", "simran@example.com")
        assert user.language == "punjabi"
        assert user.level == "beginner"
        assert user.preferences["offlineMode"] is True

    def test_duplicate_email(self):
        users = UserRegistry()
        users.register("A", "a@example.com")
        with pytest.raises(ApiError) as exc:
            users.register("B", "a@example.com")
        assert exc.value.status_code == 409

    def test_missing_fields(self):
        with pytest.raises(ApiError) as exc:
            UserRegistry().register("", "x@example.com")
        assert exc.value.status_code == 400

    def test_progress_accumulates(self):
        users = UserRegistry()
        uid = users.register("A", "a@example.com").id
        users.update_progress(uid, completed=True, time_spent=10)
        progress = users.update_progress(uid, completed=True, time_spent=5, achievements=[{"id": "streak"}])
        assert progress["completedLessons"] == 2
        assert progress["totalTimeSpent"] == 15
        assert progress["achievements"] == [{"id": "streak"}]

    def test_settings_accept_false(self):
        users = UserRegistry()
        uid = users.register("A", "a@example.com").id
        prefs = users.update_settings(uid, voiceEnabled=False, language=None)
        assert prefs["voiceEnabled"] is False
        assert users.get(uid).language == "punjabi"

    def test_delete_unknown(self):
        with pytest.raises(ApiError) as exc:
            UserRegistry().delete("ghost")
        assert exc.value.status_code == 404
