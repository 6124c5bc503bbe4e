"""Gemini API client for generating function descriptions.

Sends one synchronous ``generateContent`` request per function and
returns the generated text. ``describe`` never raises. Failed requests
and unusable responses, as well as prompt templates that cannot be
rendered, are turned into fallback descriptions that begin with ``#``
so they are easy to spot in annotated output.
"""

import json
import logging
from typing import Any, Optional

import requests
from jinja2 import TemplateError

from ps_annotator.generators.template_manager import TemplateManager
from ps_annotator.utils.config import APIConfig

logger = logging.getLogger(__name__)

MISSING_DESCRIPTION_MARKER = "# Could not extract description from API response."
ERROR_MARKER_PREFIX = "# Error calling API:"
PROMPT_ERROR_PREFIX = "# Error building prompt:"


class MalformedResponseError(ValueError):
    """The API answered, but without a usable description."""


def build_request_body(prompt: str) -> dict[str, Any]:
    """Wrap a prompt in the ``contents -> parts -> text`` request shape."""
    return {"contents": [{"parts": [{"text": prompt}]}]}


def extract_description(body: Any) -> str:
    """Pull the first candidate's first text part out of a response body.

    Args:
        body: Decoded JSON response.

    Returns:
        The description text with surrounding whitespace removed.

    Raises:
        MalformedResponseError: If any expected level is missing or empty.
    """
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise MalformedResponseError(f"Unexpected response shape: {e!r}") from e

    if not isinstance(text, str) or not text.strip():
        raise MalformedResponseError("Response text is empty")
    return text.strip()


class GeminiClient:
    """Client for the Gemini ``generateContent`` endpoint.

    One call is made per ``describe``; there is no retry, caching or
    rate limiting. The API key is sent in plaintext in a request header.
    """

    def __init__(
        self,
        api_key: str,
        config: Optional[APIConfig] = None,
        template_manager: Optional[TemplateManager] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Gemini API key.
            config: API configuration. Uses defaults if not provided.
            template_manager: Renders the prompt. Creates a default
                instance if not provided.

        Raises:
            ValueError: If the API key is empty.
        """
        if not api_key:
            raise ValueError(
                "Gemini API key is not set. Pass --api-key or set GEMINI_API_KEY."
            )
        self.config = config or APIConfig()
        self.templates = template_manager or TemplateManager()
        self._api_key = api_key
        self.request_count = 0

    def describe(self, function_text: str) -> str:
        """Generate a description for one function.

        Args:
            function_text: Verbatim source of the function.

        Returns:
            The generated description, or a fallback string starting
            with ``#`` if the call failed.
        """
        try:
            prompt = self.templates.render_prompt(function_text)
        except TemplateError as e:
            logger.error("Could not build prompt: %s", e)
            return f"{PROMPT_ERROR_PREFIX} {e}"

        try:
            return self.generate(prompt)
        except MalformedResponseError as e:
            logger.warning("No description in API response: %s", e)
            return MISSING_DESCRIPTION_MARKER
        except (requests.RequestException, ValueError) as e:
            logger.error("API call failed: %s", e)
            return f"{ERROR_MARKER_PREFIX} {e}"

    def generate(self, prompt: str) -> str:
        """Send a prompt and return the generated text.

        Args:
            prompt: The full prompt text.

        Returns:
            The first candidate's text, stripped.

        Raises:
            requests.RequestException: On transport errors or a non-2xx
                status.
            MalformedResponseError: If the body lacks a description.
            ValueError: If the body is not JSON.
        """
        headers = {
            "Content-Type": "application/json",
            self.config.api_key_header: self._api_key,
        }
        data = json.dumps(build_request_body(prompt), separators=(",", ":"))

        self.request_count += 1
        logger.info(
            "Requesting description from %s (%d chars)", self.config.model, len(prompt)
        )
        response = requests.post(
            self.config.url,
            headers=headers,
            data=data.encode("utf-8"),
            timeout=self.config.timeout,
        )
        response.raise_for_status()
        return extract_description(response.json())
