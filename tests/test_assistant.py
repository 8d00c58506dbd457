"""Tests for AssistantTab: transcript updates, grounding, error replies."""

from __future__ import annotations

import pytest

from conftest import FakeGeminiClient, make_image
from studio.errors import RemoteServiceError, ValidationError
from studio.models.chat import GroundingChunk, WebSource
from studio.services.gemini import GeoLocation, TextResult
from studio.state import ProjectStateTree
from studio.tabs import AssistantTab


@pytest.fixture
def tab(tree: ProjectStateTree, client: FakeGeminiClient) -> AssistantTab:
    return AssistantTab(tree, client)


class TestSend:
    def test_appends_user_and_reply(self, tab: AssistantTab, client: FakeGeminiClient):
        reply = tab.send("  Hello there  ")

        messages = tab.messages
        assert [m.role for m in messages] == ["model", "user", "model"]
        assert messages[1].text == "Hello there"
        assert messages[2] == reply
        assert reply.text == client.text_result.text
        assert client.calls[0][1]["prompt"] == "Hello there"

    def test_empty_message_rejected(self, tab: AssistantTab, client: FakeGeminiClient):
        with pytest.raises(ValidationError):
            tab.send("   ")
        assert len(tab.messages) == 1
        assert client.calls == []

    def test_image_only_message(self, tab: AssistantTab, client: FakeGeminiClient):
        image = make_image()
        tab.send("", image=image)
        kwargs = client.calls[0][1]
        assert kwargs["image"].base64 == image.base64
        assert kwargs["image"].mime_type == "image/png"
        assert tab.messages[1].image == image

    def test_maps_disabled_with_image(self, tab: AssistantTab, client: FakeGeminiClient):
        here = GeoLocation(latitude=55.75, longitude=37.62)
        tab.send("where am I?", image=make_image(), use_maps=True, location=here)
        assert client.calls[0][1]["use_maps"] is False

    def test_maps_and_thinking_forwarded(self, tab: AssistantTab, client: FakeGeminiClient):
        here = GeoLocation(latitude=55.75, longitude=37.62)
        tab.send("coffee nearby?", thinking_mode=True, use_maps=True, location=here)
        kwargs = client.calls[0][1]
        assert kwargs["use_maps"] is True
        assert kwargs["thinking_mode"] is True
        assert kwargs["location"] == here

    def test_citations_attached(self, tab: AssistantTab, client: FakeGeminiClient):
        chunk = GroundingChunk(web=WebSource(uri="https://example.com", title="Example"))
        client.text_result = TextResult(text="See source", citations=[chunk])
        reply = tab.send("cite something")
        assert reply.grounding_chunks == [chunk]

    def test_failure_appends_apology_and_raises(self, tab: AssistantTab, client: FakeGeminiClient):
        client.error = RemoteServiceError("generate_text", "rate limited")

        with pytest.raises(RemoteServiceError):
            tab.send("hello")

        last = tab.messages[-1]
        assert last.role == "model"
        assert last.text == "Sorry, I ran into an error: generate_text failed: rate limited"


class TestSaveToBuilder:
    def test_save_clothing(self, tab: AssistantTab, tree: ProjectStateTree):
        item = tab.save_to_builder_clothing("Trench", "a beige trench coat")
        assert tree.get().image_studio.custom_clothing == [item]

    def test_save_location(self, tab: AssistantTab, tree: ProjectStateTree):
        item = tab.save_to_builder_location("Station", "Platform", "on a busy train platform")
        assert tree.get().image_studio.custom_locations == [item]
        assert tree.get().assistant.messages == tab.messages
