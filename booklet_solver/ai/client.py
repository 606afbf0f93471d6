"""HTTP client for a self-hosted solver service."""

import logging
from typing import Optional
from urllib.parse import urljoin

import requests
from pydantic import ValidationError

from ..models.processing_job import DetailLevel
from .errors import RateLimitError, RemoteTransformError, TransientTransformError
from .providers import SolverProvider, normalize_page_answer, require_document_answer, to_data_uri
from .schemas import SolveDocumentRequest, SolvePageRequest, SolveResponse

logger = logging.getLogger(__name__)


class AIClient(SolverProvider):
    """Solver provider that calls a remote HTTP endpoint.

    The service exposes ``POST solve``, ``POST solve-page`` and ``GET health``.
    """

    name = "http"

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: int = 120
    ):
        """Initialize AI client.

        Args:
            endpoint: Base URL for the solver service (e.g., "https://api.example.com/v1/")
            api_key: Optional API key for authentication
            timeout: Request timeout in seconds
        """
        self.endpoint = endpoint.rstrip('/') + '/'
        self.api_key = api_key
        self.timeout = timeout
        self.session = requests.Session()

        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        }
        if api_key:
            headers['Authorization'] = f'Bearer {api_key}'
        self.session.headers.update(headers)

    def _post(self, path: str, payload: dict) -> SolveResponse:
        """POST a payload and parse the solve response.

        Raises:
            RateLimitError: On HTTP 429
            TransientTransformError: On timeout, connection failure or 5xx
            RemoteTransformError: On any other API error or malformed response
        """
        url = urljoin(self.endpoint, path)

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise TransientTransformError(f"Request to {url} timed out after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise TransientTransformError(f"Failed to connect to {url}: {e}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code
            error_msg = f"API error: {status}"
            try:
                error_data = e.response.json()
            except ValueError:
                error_data = None
            if isinstance(error_data, dict):
                error_msg += f" - {error_data.get('error', 'Unknown error')}"
            else:
                error_msg += f" - {e.response.text[:200]}"
            if status == 429:
                raise RateLimitError(error_msg, status_code=status) from e
            if status >= 500:
                raise TransientTransformError(error_msg, status_code=status) from e
            raise RemoteTransformError(error_msg, status_code=status) from e

        try:
            return SolveResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RemoteTransformError(f"Malformed response from {url}: {e}") from e

    def solve_document(self, pdf_bytes: bytes, detail_level) -> str:
        request = SolveDocumentRequest(
            pdf_data_uri=to_data_uri(pdf_bytes, "application/pdf"),
            detail_level=DetailLevel.parse(detail_level),
        )
        result = self._post('solve', request.model_dump(mode='json'))
        return require_document_answer(result.solved_answers)

    def solve_page(self, image_bytes: bytes, page_number: int, total_pages: int, detail_level) -> str:
        request = SolvePageRequest(
            page_image_uri=to_data_uri(image_bytes, "image/png"),
            page_number=page_number,
            total_pages=total_pages,
            detail_level=DetailLevel.parse(detail_level),
        )
        result = self._post('solve-page', request.model_dump(mode='json'))
        return normalize_page_answer(result.solved_answers)

    def health_check(self) -> bool:
        """Check if the solver service is available.

        Returns:
            True if service is available, False otherwise
        """
        url = urljoin(self.endpoint, 'health')
        try:
            response = self.session.get(url, timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.debug("Health check against %s failed: %s", url, e)
            return False
