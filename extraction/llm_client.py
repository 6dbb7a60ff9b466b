"""Anthropic client wrapper shared by all text agents."""
import json
from typing import Any, Optional

import anthropic
from anthropic import Anthropic
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from utils.logger import setup_logger
import config

logger = setup_logger(__name__)

# Errors worth another attempt: rate limits, dropped connections, 5xx / overloaded
TRANSIENT_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
)


class ExtractionError(Exception):
    """Raised when an LLM call fails or returns unusable output."""
    pass


def extract_json(response_text: str) -> Any:
    """Parse JSON from a model response.

    Tries the raw text first, then a fenced code block, then the outermost
    JSON array or object found in the text.

    Args:
        response_text: Raw model output

    Returns:
        Parsed JSON value

    Raises:
        ExtractionError: If no valid JSON can be found
    """
    try:
        return json.loads(response_text)
    except json.JSONDecodeError:
        pass

    extracted = None
    if "```json" in response_text:
        extracted = response_text.split("```json", 1)[1].split("```")[0].strip()
    elif "```" in response_text:
        parts = response_text.split("```")
        if len(parts) >= 3:
            extracted = parts[1].strip()

    if extracted:
        try:
            return json.loads(extracted)
        except json.JSONDecodeError:
            pass

    # Last resort: first [ or { up to the matching last ] or }
    start_arr = response_text.find('[')
    start_obj = response_text.find('{')
    if start_arr != -1 or start_obj != -1:
        if start_arr == -1 or (start_obj != -1 and start_obj < start_arr):
            start, end_char = start_obj, '}'
        else:
            start, end_char = start_arr, ']'

        end = response_text.rfind(end_char)
        if end > start:
            try:
                return json.loads(response_text[start:end + 1])
            except json.JSONDecodeError:
                pass

    logger.error(f"Could not extract valid JSON from response. First 500 chars: {response_text[:500]}")
    raise ExtractionError("Could not parse JSON from model response")


class LLMClient:
    """Thin wrapper around the Anthropic Messages API."""

    def __init__(
        self,
        anthropic_client: Optional[Anthropic] = None,
        model: str = config.ANTHROPIC_MODEL,
        max_tokens: int = config.MAX_OUTPUT_TOKENS,
        max_retries: int = config.MAX_RETRIES
    ):
        """Initialize client.

        Args:
            anthropic_client: Anthropic API client, created from config if omitted
            model: Model name to use
            max_tokens: Output token cap per call
            max_retries: Attempts for transient API errors
        """
        if anthropic_client is None:
            if not config.ANTHROPIC_API_KEY:
                raise ExtractionError("ANTHROPIC_API_KEY not set in environment")
            anthropic_client = Anthropic(api_key=config.ANTHROPIC_API_KEY)

        self.client = anthropic_client
        self.model = model
        self.max_tokens = max_tokens
        self.max_retries = max_retries
        self.total_tokens_used = 0

        logger.info(f"LLMClient initialized with model: {model}")

    def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = config.ANALYSIS_TEMPERATURE
    ) -> str:
        """Send a single-turn prompt and return the response text.

        Raises:
            ExtractionError: If the call fails after retries or returns no text
        """
        try:
            message = self._create_message(prompt, system, temperature)
        except anthropic.APIError as e:
            logger.error(f"LLM call failed: {e}")
            raise ExtractionError(f"LLM call failed: {e}") from e

        usage = getattr(message, "usage", None)
        if usage is not None:
            self.total_tokens_used += usage.input_tokens + usage.output_tokens

        text = "".join(
            block.text for block in message.content if getattr(block, "type", "text") == "text"
        )
        if not text.strip():
            raise ExtractionError("LLM returned an empty response")
        return text

    def complete_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = config.ANALYSIS_TEMPERATURE
    ) -> Any:
        """Send a prompt and parse the response as JSON."""
        return extract_json(self.complete(prompt, system=system, temperature=temperature))

    def _create_message(self, prompt: str, system: Optional[str], temperature: float):
        @retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=config.RETRY_BACKOFF_MULTIPLIER, min=2, max=60),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True
        )
        def _wrapper():
            kwargs = dict(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}]
            )
            if system:
                kwargs["system"] = system
            return self.client.messages.create(**kwargs)

        return _wrapper()
