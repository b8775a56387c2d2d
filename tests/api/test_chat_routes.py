"""Tests for /chat routes through the full app. Chat routes are public."""

import json

from clients.llm_client import ErrorEvent, LLMResponse, TextEvent
from clients.search_client import ImageResult, SearchError, WebLink


IMAGE = ImageResult(url="https://img/1.jpg", title="One", thumbnail="https://img/1t.jpg", source="Wikipedia")


def sse_frames(response) -> list[dict]:
    """Parse a text/event-stream body into frame payloads."""
    frames = []
    for block in response.text.split("\n\n"):
        if block.startswith("data: "):
            frames.append(json.loads(block[len("data: "):]))
    return frames


def streaming(*events):
    def stream(*args, **kwargs):
        yield from events
    return stream


class TestChat:
    """POST /chat"""

    def test_reply_envelope(self, client, llm, search):
        llm.generate.return_value = LLMResponse(content="Otters hold hands.")
        search.search_images.return_value = [IMAGE]

        response = client.post(
            "/chat",
            json={"message": "tell me about otters", "history": [{"role": "user", "content": "hi"}]},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["text"] == "Otters hold hands."
        assert data["intent"] == "general"
        assert data["images"][0]["url"] == IMAGE.url
        assert data["pdf"] is None

    def test_pdf_reply_is_downloadable(self, client, llm):
        llm.generate.return_value = LLMResponse(content="Rivers flow.")

        data = client.post("/chat", json={"message": "make a pdf on rivers"}).json()["data"]

        assert data["pdf"]["url"].startswith("/generated_pdfs/response_")
        download = client.get(data["pdf"]["url"])
        assert download.status_code == 200
        assert download.content.startswith(b"%PDF")

    def test_empty_message_is_400(self, client):
        response = client.post("/chat", json={"message": ""})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_no_token_needed(self, client, llm):
        llm.generate.return_value = LLMResponse(content="hi")
        assert client.post("/chat", json={"message": "hello there"}).status_code == 200


class TestChatStream:
    """POST /chat/stream"""

    def test_event_stream(self, client, llm, search):
        llm.stream.side_effect = streaming(TextEvent("Hel"), TextEvent("lo"))
        search.search_images.return_value = [IMAGE]

        response = client.post("/chat/stream", json={"message": "tell me about otters"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        frames = sse_frames(response)
        assert frames[0] == {"type": "intent", "intent": "general"}
        assert frames[-1] == {"type": "done"}
        assert "".join(f["content"] for f in frames if f["type"] == "text") == "Hello"
        assert [f["images"] for f in frames if f["type"] == "images"] == [[IMAGE.model_dump()]]

    def test_upstream_failure_ends_with_error_frame(self, client, llm):
        llm.stream.side_effect = streaming(ErrorEvent("overloaded"))

        frames = sse_frames(client.post("/chat/stream", json={"message": "hello there"}))

        assert frames[-1]["type"] == "error"
        assert "error" in frames[-1]

    def test_missing_message_and_image_is_400(self, client, llm):
        response = client.post("/chat/stream", json={"message": ""})

        assert response.status_code == 400
        llm.stream.assert_not_called()

    def test_image_only_request(self, client, llm, search):
        llm.stream.side_effect = streaming(TextEvent("A cat."))

        response = client.post("/chat/stream", json={"message": "", "imageData": "data:image/png;base64,AAAA"})

        assert response.status_code == 200
        assert sse_frames(response)[-1] == {"type": "done"}
        user_turn = llm.stream.call_args.args[0][-1]
        assert user_turn["content"][0]["type"] == "image"

    def test_bad_image_is_400(self, client):
        response = client.post("/chat/stream", json={"message": "what is this", "imageData": "not-a-data-url"})
        assert response.status_code == 400


class TestOcr:
    """POST /chat/ocr"""

    def test_returns_text(self, client, llm):
        llm.generate.return_value = LLMResponse(content="STOP")

        response = client.post("/chat/ocr", json={"imageData": "data:image/png;base64,AAAA"})

        assert response.json()["data"] == {"text": "STOP", "success": True}
        content = llm.generate.call_args.args[0][-1]["content"]
        assert content[0]["type"] == "image"

    def test_missing_image_is_400(self, client):
        assert client.post("/chat/ocr", json={}).status_code == 400


class TestSearchRoutes:
    """GET /chat/images and /chat/links"""

    def test_images(self, client, search):
        search.search_images.return_value = [IMAGE]

        response = client.get("/chat/images", params={"q": "otters", "count": 2})

        assert response.json()["data"]["images"][0]["title"] == "One"
        search.search_images.assert_called_once_with("otters", 2)

    def test_images_requires_query(self, client):
        assert client.get("/chat/images").status_code == 400

    def test_images_failure_is_502(self, client, search):
        search.search_images.side_effect = SearchError("down")
        assert client.get("/chat/images", params={"q": "otters"}).status_code == 502

    def test_links(self, client, search):
        search.search_web.return_value = [WebLink(title="Otter", url="https://otter.example")]

        response = client.get("/chat/links", params={"q": "otters"})

        assert response.json()["data"]["links"][0]["url"] == "https://otter.example"
        search.search_web.assert_called_once_with("otters", 5)
