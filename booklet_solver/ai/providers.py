"""AI provider abstraction for OpenAI and Claude.

Vision input: PNG/JPEG, max 4096 px longest side, 20 MB, one image per request.
Every SDK failure leaves a provider as a RemoteTransformError subclass.
"""

from __future__ import annotations

import base64
import io
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Tuple

try:
    from openai import OpenAI
except ImportError:
    OpenAI = None

try:
    from anthropic import Anthropic
except ImportError:
    Anthropic = None

try:
    from PIL import Image
except ImportError:
    Image = None

from .errors import RemoteTransformError, as_transform_error
from .prompts import EMPTY_PAGE_TEXT, SYSTEM_PROMPT, build_document_prompt, build_page_prompt

logger = logging.getLogger(__name__)

VISION_MAX_PIXELS_LONGEST_SIDE = 4096
VISION_MAX_FILE_BYTES = 20 * 1024 * 1024  # 20 MB
MAX_OUTPUT_TOKENS = 4096


def to_data_uri(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def prepare_vision_image(image_bytes: bytes) -> Tuple[bytes, str]:
    """Enforce vision limits on a rendered page (max 4096 px, 20 MB).

    Scales down if the longest side exceeds the limit and falls back to JPEG
    when PNG is too large. Returns (image_bytes, mime_type).
    """
    if Image is None:
        raise ImportError("Pillow (PIL) is required for vision. Install with: pip install Pillow")
    img = Image.open(io.BytesIO(image_bytes)).convert("RGB")
    w, h = img.size
    longest = max(w, h)
    if longest <= VISION_MAX_PIXELS_LONGEST_SIDE and len(image_bytes) <= VISION_MAX_FILE_BYTES:
        return (image_bytes, "image/png")
    if longest > VISION_MAX_PIXELS_LONGEST_SIDE:
        scale = VISION_MAX_PIXELS_LONGEST_SIDE / longest
        new_w = max(1, int(w * scale))
        new_h = max(1, int(h * scale))
        img = img.resize((new_w, new_h), Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    out = buf.getvalue()
    if len(out) > VISION_MAX_FILE_BYTES:
        for q in [85, 70, 50]:
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=q, optimize=True)
            if len(buf.getvalue()) <= VISION_MAX_FILE_BYTES:
                return (buf.getvalue(), "image/jpeg")
        raise ValueError(f"Image exceeds {VISION_MAX_FILE_BYTES // (1024 * 1024)} MB after scaling")
    return (out, "image/png")


def normalize_page_answer(text: str) -> str:
    """Blank page answers become the standard no-questions notice."""
    text = (text or "").strip()
    return text or EMPTY_PAGE_TEXT


def require_document_answer(text: str) -> str:
    text = (text or "").strip()
    if not text:
        raise RemoteTransformError("The AI model failed to return a solved answer key.")
    return text


class SolverProvider(ABC):
    """Abstract base class for remote solvers."""

    name = "provider"

    @abstractmethod
    def solve_document(self, pdf_bytes: bytes, detail_level) -> str:
        """Solve every question in a whole PDF.

        Args:
            pdf_bytes: Raw PDF payload
            detail_level: short, medium or detailed

        Returns:
            Markdown answer key

        Raises:
            RemoteTransformError: If the remote call fails or returns nothing
        """

    @abstractmethod
    def solve_page(self, image_bytes: bytes, page_number: int, total_pages: int, detail_level) -> str:
        """Solve the questions on one rendered page.

        Args:
            image_bytes: PNG of the page
            page_number: 1-indexed page number, used for prompt framing
            total_pages: Page count of the whole document
            detail_level: short, medium or detailed

        Returns:
            Markdown answers for the page

        Raises:
            RemoteTransformError: If the remote call fails
        """


class OpenAIProvider(SolverProvider):
    """OpenAI provider using chat completions with vision and file input."""

    name = "openai"

    def __init__(self, api_key: str, model: str = "gpt-4o"):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name (default: gpt-4o)
        """
        if OpenAI is None:
            raise ImportError(
                "openai library is required. Install with: pip install openai"
            )

        self.client = OpenAI(api_key=api_key)
        self.model = model

    def _complete(self, user_content: List[Any]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            max_tokens=MAX_OUTPUT_TOKENS,
        )
        return (response.choices[0].message.content or "").strip()

    def solve_document(self, pdf_bytes: bytes, detail_level) -> str:
        user_content: List[Any] = [
            {"type": "text", "text": build_document_prompt(detail_level)},
            {
                "type": "file",
                "file": {"filename": "booklet.pdf", "file_data": to_data_uri(pdf_bytes, "application/pdf")},
            },
        ]
        try:
            content = self._complete(user_content)
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise as_transform_error(e, "OpenAI document solve failed") from e
        return require_document_answer(content)

    def solve_page(self, image_bytes: bytes, page_number: int, total_pages: int, detail_level) -> str:
        img_bytes, mime = prepare_vision_image(image_bytes)
        user_content: List[Any] = [
            {"type": "text", "text": build_page_prompt(page_number, total_pages, detail_level)},
            {"type": "image_url", "image_url": {"url": to_data_uri(img_bytes, mime)}},
        ]
        try:
            content = self._complete(user_content)
        except Exception as e:
            logger.error(f"OpenAI API error on page {page_number}: {e}")
            raise as_transform_error(e, f"OpenAI page {page_number} solve failed") from e
        return normalize_page_answer(content)


class ClaudeProvider(SolverProvider):
    """Claude provider using the Anthropic messages API."""

    name = "claude"

    def __init__(self, api_key: str, model: str = "claude-3-5-sonnet-20241022"):
        """Initialize Claude provider.

        Args:
            api_key: Anthropic API key
            model: Model name (default: claude-3-5-sonnet-20241022)
        """
        if Anthropic is None:
            raise ImportError(
                "anthropic library is required. Install with: pip install anthropic"
            )

        self.client = Anthropic(api_key=api_key)
        self.model = model

    def _complete(self, user_content: List[Any]) -> str:
        response = self.client.messages.create(
            model=self.model,
            max_tokens=MAX_OUTPUT_TOKENS,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": user_content}],
        )
        parts = [block.text for block in response.content if getattr(block, "type", "text") == "text"]
        return "".join(parts).strip()

    def solve_document(self, pdf_bytes: bytes, detail_level) -> str:
        b64 = base64.b64encode(pdf_bytes).decode("ascii")
        user_content: List[Any] = [
            {"type": "document", "source": {"type": "base64", "media_type": "application/pdf", "data": b64}},
            {"type": "text", "text": build_document_prompt(detail_level)},
        ]
        try:
            content = self._complete(user_content)
        except Exception as e:
            logger.error(f"Claude API error: {e}")
            raise as_transform_error(e, "Claude document solve failed") from e
        return require_document_answer(content)

    def solve_page(self, image_bytes: bytes, page_number: int, total_pages: int, detail_level) -> str:
        img_bytes, mime = prepare_vision_image(image_bytes)
        b64 = base64.b64encode(img_bytes).decode("ascii")
        user_content: List[Any] = [
            {"type": "image", "source": {"type": "base64", "media_type": mime, "data": b64}},
            {"type": "text", "text": build_page_prompt(page_number, total_pages, detail_level)},
        ]
        try:
            content = self._complete(user_content)
        except Exception as e:
            logger.error(f"Claude API error on page {page_number}: {e}")
            raise as_transform_error(e, f"Claude page {page_number} solve failed") from e
        return normalize_page_answer(content)
