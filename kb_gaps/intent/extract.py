"""
Batched intent extraction with pause/resume and per-batch failure isolation.

The orchestrator walks the conversation list in fixed-size batches, sends one
inference request per batch and turns the response into Intent records.
Ordinary provider failures degrade the affected batch to "ERROR:" intents and
the run continues; a rejected credential halts the run in the PAUSED state so
the operator can fix it and resume from the next unprocessed batch.
"""

import logging
import math
import threading
import time
from collections.abc import Iterable, Iterator
from typing import Any

from kb_gaps.exceptions import (
    ConfigurationError,
    InvalidConfigError,
    LLMAPIError,
    LLMError,
    LLMPermissionError,
    LLMResponseParsingError,
    LLMTransientError,
    RetryableError,
)
from kb_gaps.intent.classify import tally_intents
from kb_gaps.intent.parse import parse_intent_array
from kb_gaps.intent.prompts import PromptRenderer
from kb_gaps.llm.base import LLMProvider
from kb_gaps.models.conversation import Conversation
from kb_gaps.models.intent import ERROR_PREFIX, ExtractionResult, Intent
from kb_gaps.models.pipeline import PipelineRunState, RunStatus
from kb_gaps.util.redact import redact_sensitive
from kb_gaps.util.retry import RetryStrategy, retry_with_backoff

logger = logging.getLogger(__name__)

# Upper bound the inference endpoint accepts per request
MAX_BATCH_SIZE = 25
ERROR_DETAIL_LENGTH = 100


class PauseToken:
    """
    Cooperative pause signal.

    The orchestrator only looks at it between batches, so an in-flight
    request always finishes before the run pauses. Safe to set from another
    thread (e.g. a progress UI).
    """

    def __init__(self):
        self._event = threading.Event()

    def request_pause(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    @property
    def pause_requested(self) -> bool:
        return self._event.is_set()


def _conv_key(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return "" if value is None else str(value).strip()


class IntentExtractionOrchestrator:
    """
    Drives an LLM provider over batches of conversations.

    Example:
        >>> orchestrator = IntentExtractionOrchestrator(provider, batch_size=10)
        >>> for state in orchestrator.run(conversations):
        ...     print(state.status, state.processed_count, state.total_count)
        >>> result = orchestrator.result()
    """

    def __init__(
        self,
        provider: LLMProvider,
        batch_size: int = 10,
        model: str | None = None,
        retry_limit: int = 3,
        batch_delay: float = 0.5,
        retry_delay: float = RetryStrategy.LLM_API["initial_delay"],
        max_tokens: int = 3000,
        temperature: float = 0.1,
        pause_token: PauseToken | None = None,
        prompt_renderer: PromptRenderer | None = None,
    ):
        """
        Args:
            provider: Inference provider used for every batch
            batch_size: Conversations per inference request (1-25)
            model: Model override (default: the provider's configured model)
            retry_limit: Attempts per batch for transient provider errors
            batch_delay: Seconds to wait between batches
            retry_delay: Initial backoff delay between retries
            max_tokens: Completion budget per batch
            temperature: Sampling temperature
            pause_token: Shared pause signal (one is created if omitted)
            prompt_renderer: Prompt source (default: packaged templates)
        """
        self.provider = provider
        self.batch_size = batch_size
        self.model = model
        self.retry_limit = retry_limit
        self.batch_delay = batch_delay
        self.retry_delay = retry_delay
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.pause_token = pause_token or PauseToken()
        self.prompts = prompt_renderer or PromptRenderer()

        self._conversations: list[Conversation] = []
        self._offset = 0
        self._intents: list[Intent] = []
        self._state = PipelineRunState()

    @property
    def state(self) -> PipelineRunState:
        """Latest run-state snapshot."""
        return self._state

    def pause(self) -> None:
        """Request a pause at the next batch boundary."""
        self.pause_token.request_pause()

    def interrupt(self) -> None:
        """
        Mark a run abandoned mid-batch (e.g. by Ctrl-C) as paused.

        The batch in flight was never committed, so ``resume()`` starts again
        from it.
        """
        if self._state.status is RunStatus.RUNNING:
            logger.info("Extraction interrupted at %d/%d", self._offset, self._state.total_count)
            self._state = self._state.evolve(
                status=RunStatus.PAUSED, message="Extraction interrupted"
            )

    def update_provider(self, provider: LLMProvider) -> None:
        """Swap the provider, e.g. after fixing credentials on a halted run."""
        if self._state.status is RunStatus.RUNNING:
            raise RuntimeError("Cannot change provider while a run is in progress")
        self.provider = provider

    def run(self, conversations: Iterable[Conversation]) -> Iterator[PipelineRunState]:
        """
        Start a fresh run over ``conversations``.

        Yields:
            A RUNNING snapshot, one snapshot per finished batch, and a final
            COMPLETED, PAUSED or FAILED snapshot

        Raises:
            ConfigurationError: After yielding FAILED, if the batch size or
                credentials are unusable
        """
        self._conversations = list(conversations)
        self._offset = 0
        self._intents = []
        self.pause_token.clear()
        total_batches = math.ceil(len(self._conversations) / self.batch_size) if self.batch_size > 0 else 0
        self._state = PipelineRunState(
            total_count=len(self._conversations),
            total_batches=total_batches,
        )
        yield from self._drive()

    def resume(self) -> Iterator[PipelineRunState]:
        """
        Continue a paused run from the first batch not yet committed.

        Raises:
            RuntimeError: If the run is not paused
        """
        if self._state.status is not RunStatus.PAUSED:
            raise RuntimeError(f"Cannot resume a run that is {self._state.status}")
        self.pause_token.clear()
        yield from self._drive()

    def run_to_completion(self, conversations: Iterable[Conversation]) -> ExtractionResult:
        """Drain ``run`` and return the accumulated result."""
        for _ in self.run(conversations):
            pass
        return self.result()

    def result(self) -> ExtractionResult:
        """Intents and tallies committed so far."""
        tally = self._state.tally
        return ExtractionResult(
            intents=list(self._intents),
            successful_extractions=tally.successful,
            unclear_intents=tally.unclear,
            error_count=tally.errors,
            model=self.model or self.provider.get_model_name(),
        )

    def _check_configuration(self) -> None:
        if not 1 <= self.batch_size <= MAX_BATCH_SIZE:
            raise InvalidConfigError(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {self.batch_size}"
            )
        if self.retry_limit < 1:
            raise InvalidConfigError(f"retry_limit must be at least 1, got {self.retry_limit}")
        self.provider.check_configuration()

    def _drive(self) -> Iterator[PipelineRunState]:
        try:
            self._check_configuration()
        except (ConfigurationError, LLMError) as e:
            logger.error("Extraction aborted before any request: %s", e.message)
            self._state = self._state.evolve(
                status=RunStatus.FAILED, error=e.message, message="Extraction failed"
            )
            yield self._state
            raise

        total = len(self._conversations)
        self._state = self._state.evolve(
            status=RunStatus.RUNNING,
            error=None,
            permission_error=False,
            message=f"Extracting intents from {total} conversations",
        )
        yield self._state

        while self._offset < total:
            if self.pause_token.pause_requested:
                logger.info("Extraction paused at %d/%d", self._offset, total)
                self._state = self._state.evolve(status=RunStatus.PAUSED, message="Extraction paused")
                yield self._state
                return

            batch = self._conversations[self._offset : self._offset + self.batch_size]
            batch_number = self._offset // self.batch_size + 1
            self._state = self._state.evolve(
                current_batch=batch_number,
                message=(
                    f"Processing batch {batch_number}/{self._state.total_batches} "
                    f"({len(batch)} conversations)..."
                ),
            )

            try:
                intents = self._process_batch(batch, batch_number)
            except LLMPermissionError as e:
                logger.error("Batch %d halted on a permission error: %s", batch_number, e.message)
                self._state = self._state.evolve(
                    status=RunStatus.PAUSED,
                    error=e.message,
                    permission_error=True,
                    message="Extraction halted: API key permission error",
                )
                yield self._state
                return

            self._intents.extend(intents)
            self._offset += len(batch)
            self._state = self._state.evolve(
                processed_count=self._offset,
                tally=self._state.tally + tally_intents([i.intent for i in intents]),
                message=f"Batch {batch_number}/{self._state.total_batches} completed",
            )
            yield self._state

            if self._offset < total and not self.pause_token.pause_requested and self.batch_delay > 0:
                time.sleep(self.batch_delay)

        self._state = self._state.evolve(status=RunStatus.COMPLETED, message="Intent extraction completed!")
        logger.info(
            "Extraction complete: %d successful, %d unclear, %d errors",
            self._state.tally.successful,
            self._state.tally.unclear,
            self._state.tally.errors,
        )
        yield self._state

    def _generate(self, prompt: str) -> str:
        def log_retry(error: Exception, attempt: int, max_attempts: int) -> None:
            logger.warning("Attempt %d/%d failed: %s. Retrying...", attempt, max_attempts, error)

        params = RetryStrategy.apply("LLM_API")
        params["initial_delay"] = self.retry_delay
        call = retry_with_backoff(
            max_attempts=self.retry_limit,
            retryable_exceptions=(LLMTransientError,),
            on_retry=log_retry,
            **params,
        )(self.provider.generate)

        return call(
            prompt,
            system_prompt=self.prompts.system_prompt(),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            model=self.model,
        )

    def _process_batch(self, batch: list[Conversation], batch_number: int) -> list[Intent]:
        """
        Run one batch through the provider.

        Raises:
            LLMPermissionError: Propagated so the caller can halt the run
        """
        prompt = self.prompts.batch_prompt(batch)

        try:
            response = self._generate(prompt)
        except LLMPermissionError:
            raise
        except Exception as e:
            cause = e.original_error if isinstance(e, RetryableError) else e
            detail = cause.error_message if isinstance(cause, LLMAPIError) else str(cause)
            detail = redact_sensitive(detail)[:ERROR_DETAIL_LENGTH]
            logger.warning("Batch %d failed: %s", batch_number, detail)
            return self._error_intents(batch, f"API call failed - {detail}")

        if not response or not response.strip():
            logger.warning("Batch %d: no content in response", batch_number)
            return self._error_intents(batch, "No response from AI")

        try:
            items = parse_intent_array(response)
        except LLMResponseParsingError as e:
            logger.warning("Batch %d: %s", batch_number, e.message)
            logger.debug("Unparseable response: %s", response)
            return self._error_intents(batch, "Failed to parse AI response")

        by_id = {_conv_key(conv.conv_id): conv for conv in batch}
        seen: set[str] = set()
        intents = []
        for item in items:
            key = _conv_key(item.get("ConvID"))
            text = item.get("Intent")
            text = str(text).strip() if text is not None else ""
            conversation = by_id.get(key)
            if conversation is None or not text or key in seen:
                logger.debug("Batch %d: dropping item for ConvID %r", batch_number, key)
                continue
            seen.add(key)
            intents.append(
                Intent(
                    conv_id=conversation.conv_id,
                    date=conversation.date,
                    intent=text,
                    excerpt=conversation.excerpt(),
                )
            )
        return intents

    def _error_intents(self, batch: list[Conversation], reason: str) -> list[Intent]:
        return [
            Intent(
                conv_id=conversation.conv_id,
                date=conversation.date,
                intent=f"{ERROR_PREFIX} {reason}",
                excerpt=conversation.excerpt(),
            )
            for conversation in batch
        ]


def extract_intents(
    provider: LLMProvider,
    conversations: Iterable[Conversation],
    batch_size: int = 10,
    model: str | None = None,
    retry_limit: int = 3,
    **kwargs,
) -> ExtractionResult:
    """Run a complete extraction and return its result."""
    orchestrator = IntentExtractionOrchestrator(
        provider, batch_size=batch_size, model=model, retry_limit=retry_limit, **kwargs
    )
    return orchestrator.run_to_completion(conversations)
