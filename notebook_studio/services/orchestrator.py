"""
Generation orchestrator - business logic of a user request
Records the user's message, drives the generation client and reconciles the
outcome into the notebook's conversation log
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Union
from loguru import logger

from notebook_studio.models import ContentType, ConversationMessage, Notebook, Role, Source, generate_id
from notebook_studio.services.catalogue import Intent, IntentSpec, get_intent_spec
from notebook_studio.services.errors import BusyError, ErrorKind, ValidationError
from notebook_studio.services.generation import GenerationClient
from notebook_studio.services.notebooks import NotebookService


ERROR_MESSAGE_TEXT = "Sorry, I encountered an error while generating a response. Please try again."


class RequestState(str, Enum):
    IDLE = "idle"
    AWAITING_RESULT = "awaiting_result"
    SETTLED = "settled"


@dataclass(frozen=True)
class Settlement:
    """Outcome of one request: the model message that was appended, and why it failed if it did"""
    request_id: str
    notebook_id: str
    intent: Intent
    message: ConversationMessage
    error_kind: Optional[ErrorKind] = None

    @property
    def succeeded(self) -> bool:
        return self.error_kind is None


class Orchestrator:
    """
    Single-flight request orchestrator

    One request may be in flight for the whole process at a time. ``submit``
    appends the user message and schedules the backend call; ``settle`` waits
    for it. Requests cannot be cancelled once submitted.
    """

    def __init__(
        self,
        notebooks: NotebookService,
        generator: GenerationClient,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Initialize orchestrator

        Args:
            notebooks: Notebook service owning the conversation logs
            generator: Generation client
            executor: Executor running backend calls (defaults to one worker thread)
        """
        self.notebooks = notebooks
        self.generator = generator
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="notebook-generation")
        self._busy = threading.Lock()
        self._pending: Dict[str, Future] = {}
        self._pending_lock = threading.Lock()

    @property
    def is_busy(self) -> bool:
        return self._busy.locked()

    @property
    def state(self) -> RequestState:
        return RequestState.AWAITING_RESULT if self.is_busy else RequestState.IDLE

    def submit(
        self,
        intent: Union[Intent, str],
        text: Optional[str] = None,
        notebook_id: Optional[str] = None,
    ) -> str:
        """
        Start a request

        Preconditions are checked before anything is written: the intent must
        be known, no other request may be in flight, the notebook must exist
        and have at least one source, and chat needs a question.

        Args:
            intent: Intent or its name ("chat", "quiz", ...)
            text: The user's question (chat) or message text (artifacts)
            notebook_id: Target notebook (defaults to the active one)

        Returns:
            Request id to pass to ``settle``

        Raises:
            ValidationError: A precondition failed; the log is unchanged
            BusyError: Another request is in flight
        """
        intent = self._resolve_intent(intent)
        spec = get_intent_spec(intent)
        text = (text or "").strip()
        if intent is Intent.CHAT and not text:
            raise ValidationError("Please enter a question")

        if not self._busy.acquire(blocking=False):
            raise BusyError("A generation request is already in progress")

        try:
            notebook = self._resolve_notebook(notebook_id)
            if not notebook.sources:
                raise ValidationError(f"Add at least one source to '{notebook.title}' before generating content")

            # Recorded before the backend call so the input survives any failure
            user_message = ConversationMessage(
                role=Role.USER,
                text=text or f"Generate {intent.value} for this notebook.",
                content_type=ContentType.TEXT,
            )
            self.notebooks.append_message(notebook.id, user_message)

            request_id = generate_id("req")
            future = self.executor.submit(self._execute, request_id, notebook.id, intent, spec, text)
        except BaseException:
            self._busy.release()
            raise

        with self._pending_lock:
            self._pending[request_id] = future
        logger.info(f"Submitted {intent.value} request {request_id} for notebook {notebook.id}")
        return request_id

    def settle(self, request_id: str, timeout: Optional[float] = None) -> Settlement:
        """
        Wait for a submitted request and return its settlement

        Args:
            request_id: Id returned by ``submit``
            timeout: Seconds to wait; ``concurrent.futures.TimeoutError`` is
                raised when exceeded and the request stays pending

        Returns:
            Settlement with the appended model message
        """
        with self._pending_lock:
            future = self._pending.get(request_id)
        if future is None:
            raise ValidationError(f"Unknown or already settled request: {request_id}")

        settlement = future.result(timeout=timeout)
        with self._pending_lock:
            self._pending.pop(request_id, None)
        return settlement

    def run(
        self,
        intent: Union[Intent, str],
        text: Optional[str] = None,
        notebook_id: Optional[str] = None,
    ) -> Settlement:
        """Submit a request and wait for it"""
        return self.settle(self.submit(intent, text=text, notebook_id=notebook_id))

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)

    def _resolve_intent(self, intent: Union[Intent, str]) -> Intent:
        try:
            return Intent(intent)
        except ValueError:
            raise ValidationError(f"Unknown request type: {intent}")

    def _resolve_notebook(self, notebook_id: Optional[str]) -> Notebook:
        if notebook_id is not None:
            return self.notebooks.get_notebook(notebook_id)
        notebook = self.notebooks.get_active_notebook()
        if notebook is None:
            raise ValidationError("Create or select a notebook first")
        return notebook

    def _execute(
        self,
        request_id: str,
        notebook_id: str,
        intent: Intent,
        spec: IntentSpec,
        text: str,
    ) -> Settlement:
        """
        Worker body: generate, append exactly one model message, release the gate

        Every failure becomes a single ERROR message with a generic text; the
        details only go to the log.
        """
        try:
            error_kind: Optional[ErrorKind] = None
            try:
                # Sources are re-read now, not captured at submit time
                sources = self.notebooks.get_notebook(notebook_id).sources
                logger.info(f"Request {request_id}: generating {intent.value} from {len(sources)} sources")
                message = self._generate(spec, sources, text)
            except Exception as e:
                error_kind = ErrorKind.of(e)
                if error_kind is ErrorKind.UNEXPECTED:
                    logger.exception(f"Request {request_id} failed unexpectedly: {e}")
                else:
                    logger.warning(f"Request {request_id} failed ({error_kind.value}): {e}")
                message = ConversationMessage(
                    role=Role.MODEL,
                    text=ERROR_MESSAGE_TEXT,
                    content_type=ContentType.ERROR,
                )

            self.notebooks.append_message(notebook_id, message)
            logger.info(f"Request {request_id} settled with {message.content_type.value} message {message.id}")
            return Settlement(
                request_id=request_id,
                notebook_id=notebook_id,
                intent=intent,
                message=message,
                error_kind=error_kind,
            )
        finally:
            self._busy.release()

    def _generate(self, spec: IntentSpec, sources: Sequence[Source], text: str) -> ConversationMessage:
        instruction = spec.render_instruction(text)

        if spec.is_structured:
            result = self.generator.generate_structured(sources, instruction, spec.response_model)
            return ConversationMessage(
                role=Role.MODEL,
                text=spec.reply_text or "",
                content_type=spec.content_type,
                content_data=result.to_content_data(),
            )

        generated = self.generator.generate_text(sources, instruction)
        if spec.reply_text is None:
            return ConversationMessage(role=Role.MODEL, text=generated, content_type=spec.content_type)

        content_data = {spec.text_field: generated} if spec.text_field else generated
        return ConversationMessage(
            role=Role.MODEL,
            text=spec.reply_text,
            content_type=spec.content_type,
            content_data=content_data,
        )
