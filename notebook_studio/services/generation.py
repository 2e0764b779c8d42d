"""
Generation client using an OpenAI-compatible API with Instructor
Turns notebook sources plus a task into free text or a validated structured object
"""
import json
from typing import List, Optional, Sequence, Type, TypeVar
import instructor
from instructor.core import IncompleteOutputException, InstructorRetryException
from openai import APIError, OpenAI
from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from notebook_studio.config import Settings
from notebook_studio.models import Source
from notebook_studio.services.errors import GenerationError, InvalidFormatError


T = TypeVar("T", bound=BaseModel)

SYSTEM_PROMPT = (
    "You are a study assistant working only from the source materials the user "
    "provides. Do not invent facts that are not supported by the sources."
)


def build_prompt(sources: Sequence[Source], task: str) -> str:
    """
    Concatenate every source into one instruction-bearing prompt

    Sources are enumerated in the order given, which is the registry's
    insertion order, so "SOURCE 2" means the same document across calls.

    Args:
        sources: Notebook sources in registry order
        task: Instruction completing "Based on the following source materials, ..."

    Returns:
        Prompt text
    """
    blocks = []
    for index, source in enumerate(sources, start=1):
        blocks.append(
            f"--- SOURCE {index}: {source.title} ({source.type.value.upper()}) ---\n"
            f"{source.content}\n"
            f"-----------------------------------"
        )
    source_material = "\n\n".join(blocks)
    task = task.strip().rstrip(".")
    return f"Based on the following source materials, {task}.\n\n{source_material}\n"


class GenerationClient:
    """
    Stateless adapter around the generative backend

    Every call issues exactly one backend request; nothing is retried here.
    """

    def __init__(self, settings: Optional[Settings] = None, client=None):
        """
        Initialize generation client

        Args:
            settings: Application settings (if None, will load from environment)
            client: Instructor-patched client exposing ``chat.completions.create``
                (if None, one is built from settings)
        """
        if settings is None:
            from notebook_studio.config import get_settings
            settings = get_settings()

        self.settings = settings
        self.base_url = settings.llm_base_url

        if client is None:
            logger.info(f"Initializing generation client with base_url: {self.base_url}")
            logger.info(f"Model: {settings.llm_model}")
            # Transport-level retries are disabled as well
            openai_client = OpenAI(
                base_url=self.base_url or None,
                api_key=settings.llm_api_key,
                timeout=settings.llm_timeout,
                max_retries=0,
            )
            client = instructor.from_openai(openai_client)

        self.client = client

    def _messages(self, sources: Sequence[Source], instruction: str) -> List[dict]:
        prompt = build_prompt(sources, instruction)
        logger.debug(f"Prompt length: {len(prompt)} characters from {len(sources)} sources")
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def generate_text(self, sources: Sequence[Source], instruction: str) -> str:
        """
        Generate unstructured text

        Args:
            sources: Notebook sources in registry order
            instruction: Task description

        Returns:
            Generated text

        Raises:
            GenerationError: If the backend call fails or returns no content
        """
        messages = self._messages(sources, instruction)
        try:
            logger.info(f"Calling LLM API for text - Model: {self.settings.llm_model}")
            response = self.client.chat.completions.create(
                model=self.settings.llm_model,
                # Raw completion, no schema
                response_model=None,
                messages=messages,
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
            )
        except Exception as e:
            logger.exception(f"Text generation failed: {e}")
            raise GenerationError(self._describe_backend_error(e)) from e

        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise GenerationError("Backend response did not contain a message") from e

        if not text or not text.strip():
            raise GenerationError("Received an empty response from the AI")

        logger.info(f"Generated {len(text)} characters of text")
        return text.strip()

    def generate_structured(
        self,
        sources: Sequence[Source],
        instruction: str,
        response_model: Type[T],
    ) -> T:
        """
        Generate an object conforming to ``response_model``

        The model's JSON schema is sent to the backend; Instructor parses and
        validates the reply in a single attempt.

        Args:
            sources: Notebook sources in registry order
            instruction: Task description
            response_model: Pydantic model the output must match

        Returns:
            Validated instance of ``response_model``

        Raises:
            InvalidFormatError: If the reply cannot be parsed or fails validation
            GenerationError: If the backend call itself fails
        """
        messages = self._messages(sources, instruction)
        try:
            logger.info(
                f"Calling LLM API for {response_model.__name__} - Model: {self.settings.llm_model}"
            )
            result = self.client.chat.completions.create(
                model=self.settings.llm_model,
                response_model=response_model,
                messages=messages,
                temperature=self.settings.llm_temperature,
                max_tokens=self.settings.llm_max_tokens,
                # Retries past the first attempt: none
                max_retries=0,
            )
        except (SchemaValidationError, json.JSONDecodeError, IncompleteOutputException) as e:
            logger.warning(f"Backend output failed {response_model.__name__} validation: {e}")
            raise InvalidFormatError(f"Could not generate valid structured content: {e}") from e
        except InstructorRetryException as e:
            if self._is_backend_failure(e):
                logger.exception(f"Structured generation failed: {e}")
                raise GenerationError(self._describe_backend_error(e)) from e
            logger.warning(f"Backend output failed {response_model.__name__} validation: {e}")
            raise InvalidFormatError(f"Could not generate valid structured content: {e}") from e
        except Exception as e:
            logger.exception(f"Structured generation failed: {e}")
            raise GenerationError(self._describe_backend_error(e)) from e

        if not isinstance(result, response_model):
            raise InvalidFormatError(
                f"Expected {response_model.__name__}, backend produced {type(result).__name__}"
            )

        logger.info(f"Successfully generated {response_model.__name__}")
        return result

    def _is_backend_failure(self, error: Exception) -> bool:
        """Whether an Instructor failure wraps a transport/API error rather than bad output"""
        candidates = [error.__cause__, error.__context__, *error.args]
        return any(isinstance(candidate, APIError) for candidate in candidates)

    def _describe_backend_error(self, error: Exception) -> str:
        """Map a backend failure to a diagnostic message"""
        error_msg = str(error)
        lowered = error_msg.lower()
        if "404" in error_msg or "not found" in lowered:
            return (
                f"API endpoint not found (404): {error_msg}. "
                f"Check BASE_URL (current: {self.base_url}) and LLM_MODEL ({self.settings.llm_model})"
            )
        if "401" in error_msg or "unauthorized" in lowered:
            return "API authentication failed (401): check API_KEY"
        if "timeout" in lowered or "timed out" in lowered:
            return "API request timed out: check the network or increase LLM_TIMEOUT"
        if "max_tokens" in lowered or "length limit" in lowered:
            return (
                f"Output exceeded the token limit (LLM_MAX_TOKENS={self.settings.llm_max_tokens}): {error_msg}"
            )
        return f"AI generation failed: {error_msg}"

    def test_connection(self) -> bool:
        """
        Test API connection with a simple request

        Returns:
            True if connection successful, False otherwise
        """
        try:
            logger.info(f"Testing API connection to: {self.base_url}")
            self.client.chat.completions.create(
                model=self.settings.llm_model,
                response_model=None,
                messages=[{"role": "user", "content": "Hello"}],
                max_tokens=10,
            )
            logger.info("API connection test successful!")
            return True
        except Exception as e:
            logger.error(f"API connection test failed: {self._describe_backend_error(e)}")
            return False
