"""Ollama client wrapper with error handling.

Provides the two model collaborators the pipeline needs: ``embed`` and
``generate``.
"""
import httpx
from typing import List, Dict, Optional
import structlog

from pdfqa.config import Settings
from pdfqa.errors import CollaboratorError

logger = structlog.get_logger()


class OllamaClient:
    """Client for the Ollama embeddings and chat endpoints."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize Ollama client.

        Args:
            settings: Settings holding base URL, model names and timeout
            transport: Optional httpx transport (used by tests)
        """
        self.settings = settings
        self.base_url = settings.ollama_base_url.rstrip("/")
        self.timeout = settings.request_timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def _post(self, endpoint: str, payload: Dict, collaborator: str) -> Dict:
        """POST a JSON payload and return the decoded response.

        Raises:
            CollaboratorError: On connection, HTTP or decoding errors
        """
        url = f"{self.base_url}{endpoint}"
        try:
            with self._client() as client:
                response = client.post(url, json=payload)
                response.raise_for_status()
                return response.json()

        except httpx.ConnectError as e:
            logger.error("ollama_connection_error", error=str(e), base_url=self.base_url)
            raise CollaboratorError(
                f"Cannot reach Ollama at {self.base_url}: {e}", collaborator
            ) from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "ollama_http_error",
                error=str(e),
                status_code=e.response.status_code,
                endpoint=endpoint,
            )
            raise CollaboratorError(
                f"Ollama {endpoint} returned {e.response.status_code}", collaborator
            ) from e
        except httpx.HTTPError as e:
            logger.error("ollama_http_error", error=str(e), endpoint=endpoint)
            raise CollaboratorError(f"Ollama request failed: {e}", collaborator) from e
        except ValueError as e:
            logger.error("ollama_invalid_json", error=str(e), endpoint=endpoint)
            raise CollaboratorError(
                f"Ollama {endpoint} returned invalid JSON", collaborator
            ) from e

    def embed(self, text: str, model: str = None) -> List[float]:
        """Generate an embedding vector for a text.

        Args:
            text: Text to embed
            model: Model to use (defaults to settings.embedding_model)

        Returns:
            Embedding vector

        Raises:
            CollaboratorError: On API errors or an empty embedding
        """
        model = model or self.settings.embedding_model

        logger.debug("ollama_embedding_request", model=model, prompt_length=len(text))

        data = self._post(
            "/api/embeddings",
            {"model": model, "prompt": text},
            collaborator="embedding",
        )
        embedding = data.get("embedding") or []

        if not embedding:
            logger.error("ollama_empty_embedding", model=model)
            raise CollaboratorError("Empty embedding returned from Ollama", "embedding")

        logger.debug("ollama_embedding_response", model=model, dimension=len(embedding))

        return [float(value) for value in embedding]

    def generate(
        self,
        prompt: str,
        model: str = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send a single-turn chat request and return the reply text.

        Args:
            prompt: Full prompt, sent as one user message
            model: Model to use (defaults to settings.chat_model)
            temperature: Sampling temperature (0.0-2.0)

        Returns:
            Generated text

        Raises:
            CollaboratorError: On API errors
        """
        model = model or self.settings.chat_model

        payload = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }

        if temperature is not None:
            payload["options"] = {"temperature": temperature}

        logger.info("ollama_chat_request", model=model, prompt_length=len(prompt))

        data = self._post("/api/chat", payload, collaborator="generation")
        content = data.get("message", {}).get("content", "")

        logger.info("ollama_chat_response", model=model, response_length=len(content))

        return content
