"""Unit tests for SDK-backed solver providers and the provider factory."""

import io
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from booklet_solver.ai import ProviderConfigError, create_provider
from booklet_solver.ai.client import AIClient
from booklet_solver.ai.errors import RateLimitError, RemoteTransformError, TransientTransformError
from booklet_solver.ai.prompts import EMPTY_PAGE_TEXT, build_page_prompt
from booklet_solver.ai.providers import (
    VISION_MAX_PIXELS_LONGEST_SIDE,
    ClaudeProvider,
    OpenAIProvider,
    prepare_vision_image,
)


def _png(width=40, height=60):
    from PIL import Image
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, format="PNG")
    return buf.getvalue()


def _openai_response(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _claude_response(*texts):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


class TestPrepareVisionImage:
    """Test vision limits on rendered pages."""

    def test_small_image_unchanged(self):
        data = _png()
        out, mime = prepare_vision_image(data)
        assert out == data
        assert mime == "image/png"

    def test_large_image_scaled_down(self):
        from PIL import Image
        out, mime = prepare_vision_image(_png(8192, 100))
        img = Image.open(io.BytesIO(out))
        assert max(img.size) == VISION_MAX_PIXELS_LONGEST_SIDE
        assert mime == "image/png"

    @patch("booklet_solver.ai.providers.Image", None)
    def test_requires_pillow(self):
        with pytest.raises(ImportError, match="Pillow"):
            prepare_vision_image(b"png")


@patch("booklet_solver.ai.providers.OpenAI")
class TestOpenAIProvider:
    """Test OpenAI chat completions calls."""

    def test_solve_page(self, mock_openai):
        client = mock_openai.return_value
        client.chat.completions.create.return_value = _openai_response("## Q1\n**Answer:** 4")

        provider = OpenAIProvider(api_key="sk-test", model="gpt-4o")
        text = provider.solve_page(_png(), 2, 5, "short")

        assert text == "## Q1\n**Answer:** 4"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        user_content = kwargs["messages"][1]["content"]
        assert user_content[0]["text"] == build_page_prompt(2, 5, "short")
        assert user_content[1]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_solve_page_empty_reply(self, mock_openai):
        mock_openai.return_value.chat.completions.create.return_value = _openai_response(None)

        provider = OpenAIProvider(api_key="sk-test")
        assert provider.solve_page(_png(), 1, 1, "detailed") == EMPTY_PAGE_TEXT

    def test_solve_document_sends_pdf(self, mock_openai):
        client = mock_openai.return_value
        client.chat.completions.create.return_value = _openai_response("answers")

        provider = OpenAIProvider(api_key="sk-test")
        assert provider.solve_document(b"%PDF-1.4", "medium") == "answers"

        part = client.chat.completions.create.call_args.kwargs["messages"][1]["content"][1]
        assert part["type"] == "file"
        assert part["file"]["file_data"].startswith("data:application/pdf;base64,")

    def test_solve_document_empty_reply(self, mock_openai):
        mock_openai.return_value.chat.completions.create.return_value = _openai_response("  ")

        provider = OpenAIProvider(api_key="sk-test")
        with pytest.raises(RemoteTransformError):
            provider.solve_document(b"%PDF", "short")

    def test_rate_limit_message_classified(self, mock_openai):
        mock_openai.return_value.chat.completions.create.side_effect = Exception("Rate limit reached")

        provider = OpenAIProvider(api_key="sk-test")
        with pytest.raises(RateLimitError, match="page 3"):
            provider.solve_page(_png(), 3, 4, "short")

    def test_timeout_classified(self, mock_openai):
        mock_openai.return_value.chat.completions.create.side_effect = TimeoutError("read timed out")

        provider = OpenAIProvider(api_key="sk-test")
        with pytest.raises(TransientTransformError):
            provider.solve_page(_png(), 1, 4, "short")

    def test_missing_sdk(self, mock_openai):
        with patch("booklet_solver.ai.providers.OpenAI", None):
            with pytest.raises(ImportError, match="openai"):
                OpenAIProvider(api_key="sk-test")


@patch("booklet_solver.ai.providers.Anthropic")
class TestClaudeProvider:
    """Test Anthropic messages calls."""

    def test_solve_page_joins_text_blocks(self, mock_anthropic):
        client = mock_anthropic.return_value
        client.messages.create.return_value = _claude_response("## Q1\n", "**Answer:** B")

        provider = ClaudeProvider(api_key="sk-ant")
        text = provider.solve_page(_png(), 1, 2, "detailed")

        assert text == "## Q1\n**Answer:** B"
        kwargs = client.messages.create.call_args.kwargs
        image = kwargs["messages"][0]["content"][0]
        assert image["type"] == "image"
        assert image["source"]["media_type"] == "image/png"

    def test_solve_document_sends_document_block(self, mock_anthropic):
        client = mock_anthropic.return_value
        client.messages.create.return_value = _claude_response("answers")

        provider = ClaudeProvider(api_key="sk-ant")
        assert provider.solve_document(b"%PDF", "short") == "answers"

        block = client.messages.create.call_args.kwargs["messages"][0]["content"][0]
        assert block["type"] == "document"
        assert block["source"]["media_type"] == "application/pdf"

    def test_error_wrapped(self, mock_anthropic):
        mock_anthropic.return_value.messages.create.side_effect = ValueError("invalid request")

        provider = ClaudeProvider(api_key="sk-ant")
        with pytest.raises(RemoteTransformError) as exc_info:
            provider.solve_document(b"%PDF", "short")

        assert type(exc_info.value) is RemoteTransformError
        assert "invalid request" in str(exc_info.value)


class TestCreateProvider:
    """Test provider selection."""

    @pytest.fixture(autouse=True)
    def _isolated_config(self, monkeypatch, tmp_path):
        for var in ("AI_PROVIDER", "AI_MODEL", "AI_KEY", "AI_ENDPOINT"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("BOOKLET_SOLVER_CONFIG", str(tmp_path / "ai_config.json"))

    def test_http_provider(self):
        provider = create_provider("http", endpoint="http://localhost:8000/v1")
        assert isinstance(provider, AIClient)

    def test_http_requires_endpoint(self):
        with pytest.raises(ProviderConfigError, match="AI_ENDPOINT"):
            create_provider("http")

    def test_sdk_provider_requires_key(self):
        with pytest.raises(ProviderConfigError, match="AI_KEY"):
            create_provider("openai")

    @patch("booklet_solver.ai.providers.OpenAI", MagicMock())
    def test_openai_from_env(self, monkeypatch):
        monkeypatch.setenv("AI_PROVIDER", "openai")
        monkeypatch.setenv("AI_KEY", "sk-env")
        monkeypatch.setenv("AI_MODEL", "gpt-4o-mini")

        provider = create_provider()

        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"

    @patch("booklet_solver.ai.providers.Anthropic", None)
    def test_missing_library(self):
        with pytest.raises(ProviderConfigError, match="not installed"):
            create_provider("claude", api_key="sk-ant")

    def test_unknown_provider(self):
        with pytest.raises(ProviderConfigError, match="Unknown"):
            create_provider("gemini", api_key="k")
