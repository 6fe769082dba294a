"""Application class with startup/shutdown lifecycle."""

import asyncio

import httpx

from flyer_deck.config.settings import Settings, get_settings
from flyer_deck.core.context import ContextBuilder, FactExtractor, LLMFactExtractor
from flyer_deck.core.limiter import LLM_COLLABORATOR, CollaboratorLimiter
from flyer_deck.core.orchestrator import DeckOrchestrator
from flyer_deck.synthesis.base import Synthesizer
from flyer_deck.synthesis.generative import LLMSynthesizer
from flyer_deck.tools.registry import ToolRegistry
from flyer_deck.utils.llm import LLMClient
from flyer_deck.utils.logging import configure_logging, get_logger
from flyer_deck.utils.structured_llm import StructuredLLMCaller


logger = get_logger(__name__)


class Application:
    """
    Process-wide resources and run tracking.

    Handles:
    - The shared HTTP client, tool registry and LLM client
    - Tracking in-flight deck runs and their cancel events
    - Cancelling and draining runs on shutdown

    Collaborators passed to the constructor are used as-is; missing ones
    are built from settings on startup.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: ToolRegistry | None = None,
        synthesizer: Synthesizer | None = None,
        extractor: FactExtractor | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.synthesizer = synthesizer
        self.extractor = extractor
        self.http_client: httpx.AsyncClient | None = None
        self.limiter: CollaboratorLimiter | None = None
        self._active_runs: dict[str, asyncio.Event] = {}
        self._is_shutting_down = False

    async def startup(self) -> None:
        """Initialize resources on startup."""
        settings = self.settings
        configure_logging(settings.log_level)
        logger.info("Starting application...")

        self.limiter = CollaboratorLimiter(
            default_limit=settings.tool_max_concurrency,
            limits={LLM_COLLABORATOR: settings.llm_max_concurrency},
        )

        if self.registry is None:
            self.http_client = httpx.AsyncClient(
                timeout=settings.http_timeout_seconds,
                headers={"User-Agent": "flyer-deck"},
            )
            self.registry = ToolRegistry.with_builtin_tools(
                self.http_client, settings, limiter=self.limiter
            )
            logger.info("Tool registry initialized", tools=self.registry.list_tools())

        if self.synthesizer is None or self.extractor is None:
            if settings.anthropic_api_key:
                llm_client = LLMClient(
                    api_key=settings.anthropic_api_key, limiter=self.limiter
                )
                caller = StructuredLLMCaller(
                    llm_client, max_retries=settings.synthesis_max_retries
                )
                self.synthesizer = self.synthesizer or LLMSynthesizer(
                    caller, model=settings.synthesis_model
                )
                self.extractor = self.extractor or LLMFactExtractor(
                    caller, model=settings.extraction_model
                )
            else:
                logger.warning(
                    "ANTHROPIC_API_KEY not set: generative slides will degrade "
                    "and flyer facts must be supplied by the caller"
                )

        logger.info("Application started")

    def create_orchestrator(self) -> DeckOrchestrator:
        """Build an orchestrator for one run from the shared resources."""
        if self.registry is None:
            raise RuntimeError("Application not started")
        builder = ContextBuilder(
            registry=self.registry,
            extractor=self.extractor,
            default_interest_rate=self.settings.default_interest_rate,
            default_loan_term_years=self.settings.default_loan_term_years,
        )
        return DeckOrchestrator(builder, self.registry, self.synthesizer)

    async def shutdown(self, timeout: float = 30.0) -> None:
        """
        Graceful shutdown with timeout.

        1. Stop accepting new runs
        2. Cancel in-flight runs and wait for them to finish (with timeout)
        3. Close the HTTP client

        Args:
            timeout: Maximum time to wait for runs to finish
        """
        logger.info("Shutdown initiated...")
        self._is_shutting_down = True

        if self._active_runs:
            logger.info("Cancelling in-flight runs", runs=len(self._active_runs))
            for cancel_event in self._active_runs.values():
                cancel_event.set()
            try:
                await asyncio.wait_for(self._wait_for_runs(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Timeout waiting for runs, forcing shutdown")

        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None

        logger.info("Shutdown complete")

    async def _wait_for_runs(self) -> None:
        while self._active_runs:
            await asyncio.sleep(0.1)

    def track_run(self, request_id: str) -> asyncio.Event:
        """Track an in-flight run and return its cancel event."""
        cancel_event = asyncio.Event()
        self._active_runs[request_id] = cancel_event
        return cancel_event

    def untrack_run(self, request_id: str) -> None:
        self._active_runs.pop(request_id, None)

    @property
    def is_shutting_down(self) -> bool:
        return self._is_shutting_down

    @property
    def active_runs(self) -> int:
        return len(self._active_runs)
