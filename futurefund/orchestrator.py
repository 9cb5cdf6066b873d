"""
Orchestrator for FutureFund

Runs named pipelines and wraps every run with:
1. Input checks (unknown pipeline, malformed input, missing inputs)
2. Result caching (LRU or TTL per pipeline, keyed by fingerprint())
3. A timeout raced against the graph run
4. Synthetic progress events
5. Run bookkeeping (status lookup, cancellation) and audit events

DESIGN DECISION: execute() never raises.
Every outcome, including timeouts and cancellation, comes back as a
PipelineResult. Node failures inside a run are not failures of the run:
they are listed in metadata.errors next to the partial data, and such
results are never cached.

DESIGN DECISION: Timeout and cancellation are bookkeeping only.
The graph run is a task raced against a timer through
asyncio.wait_for(asyncio.shield(task)). On timeout the caller gets a
failure at once and the task keeps running unobserved until it finishes
(it is abandoned, not interrupted). cancel() removes the run's entry;
the run finishes its nodes, sees the entry gone, and returns a
'cancelled' failure instead of its data. If the caller cancels execute()
itself, the run is dropped from the registry, its task is abandoned the
same way, and the CancelledError propagates.

Cached results are stored and served as deep copies; callers may mutate
what they receive.

CONCURRENCY: Several runs may be in flight on one event loop. The
registries and caches are plain dicts, which is safe only because no
two coroutines interleave inside a synchronous section. A multi-threaded
port must guard them with locks or give each run its own state.
"""

import asyncio
import inspect
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from futurefund.agents import GeminiInsightAgent, InsightProvider
from futurefund.audit import AuditLogger, AuditSink, create_run_id
from futurefund.cache import LRUResultCache, TTLResultCache, fingerprint
from futurefund.config import get_settings, validate_all_settings
from futurefund.models import (
    ActiveRun,
    NodeError,
    PipelineInput,
    PipelineResult,
    ProgressEvent,
    ResultMetadata,
    RunStatus,
)
from futurefund.pipelines import AnalysisServices, CachePolicy, Pipeline, build_default_pipelines


logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]

PROGRESS_CAP = 95.0


class PipelineTimeoutError(Exception):
    """A run did not finish within its timeout."""

    def __init__(self, pipeline: str, timeout_ms: int):
        self.pipeline = pipeline
        self.timeout_ms = timeout_ms
        super().__init__(f"Pipeline '{pipeline}' timed out after {timeout_ms}ms")


def tick_progress(index: int, phase_count: int) -> float:
    """Synthetic progress for the index-th tick: min(95, (i+1)/n * 95)."""
    return min(PROGRESS_CAP, (index + 1) / phase_count * PROGRESS_CAP)


class Orchestrator:
    """
    Executes registered pipelines.

    Build one with create_orchestrator() at startup and call shutdown()
    at exit.
    """

    def __init__(
        self,
        services: Optional[AnalysisServices] = None,
        pipelines: Optional[list[Pipeline]] = None,
        audit_logger: Optional[AuditLogger] = None,
        cache_capacity: Optional[int] = None,
        result_ttl_seconds: Optional[float] = None,
        default_timeout_ms: Optional[int] = None,
        progress_interval_ms: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        engine = get_settings().engine
        self._audit = audit_logger or AuditLogger()
        self._services = services or AnalysisServices.create(audit_logger=self._audit)

        self.default_timeout_ms = default_timeout_ms or engine.default_timeout_ms
        self.progress_interval_ms = progress_interval_ms or engine.progress_interval_ms

        self._lru: LRUResultCache[PipelineResult] = LRUResultCache(
            cache_capacity or engine.cache_capacity
        )
        self._ttl: TTLResultCache[PipelineResult] = TTLResultCache(
            result_ttl_seconds or engine.result_ttl_seconds,
            clock=clock,
        )

        self._pipelines: dict[str, Pipeline] = {}
        self._active: dict[str, ActiveRun] = {}
        self._abandoned: set[asyncio.Task] = set()
        self._closed = False

        for pipeline in pipelines if pipelines is not None else build_default_pipelines(self._services):
            self.register_pipeline(pipeline)

    # =========================================================================
    # REGISTRY
    # =========================================================================

    def register_pipeline(self, pipeline: Pipeline, replace: bool = False) -> None:
        if pipeline.name in self._pipelines and not replace:
            raise ValueError(f"Pipeline '{pipeline.name}' is already registered")
        self._pipelines[pipeline.name] = pipeline

    @property
    def pipeline_names(self) -> list[str]:
        return list(self._pipelines)

    @property
    def services(self) -> AnalysisServices:
        return self._services

    def _cache_for(self, pipeline: Pipeline):
        return self._ttl if pipeline.cache_policy == CachePolicy.TTL else self._lru

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def _failure(
        self,
        run_id: Optional[str],
        pipeline_name: str,
        error: str,
        details: Optional[dict[str, Any]] = None,
    ) -> PipelineResult:
        await self._audit.log_run_failed(run_id, pipeline_name, error)
        return PipelineResult.failure(error, details)

    async def _emit(self, on_progress: ProgressCallback, event: ProgressEvent) -> None:
        """Deliver one progress event. Callback failures are logged and ignored."""
        try:
            outcome = on_progress(event)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(
                "progress_callback_failed",
                run_id=event.run_id,
                pipeline=event.pipeline,
                error=str(e),
            )
            await self._audit.log_progress_callback_failed(event.run_id, event.pipeline, str(e))

    async def _tick(self, run_id: str, pipeline: Pipeline, on_progress: ProgressCallback) -> None:
        """Emit estimated progress until cancelled. Not measured from nodes."""
        phases = pipeline.phases
        index = 0
        while True:
            await asyncio.sleep(self.progress_interval_ms / 1000)
            stage = phases[min(index, len(phases) - 1)]
            await self._emit(on_progress, ProgressEvent(
                run_id=run_id,
                pipeline=pipeline.name,
                stage=stage,
                progress=tick_progress(index, len(phases)),
                message=pipeline.phase_messages[stage],
            ))
            index += 1

    def _abandon(self, task: asyncio.Task) -> None:
        """Keep a timed-out or caller-cancelled run referenced until it finishes."""
        self._abandoned.add(task)

        def reap(done: asyncio.Task) -> None:
            self._abandoned.discard(done)
            if not done.cancelled() and done.exception() is not None:
                logger.warning("abandoned_run_failed", error=str(done.exception()))

        task.add_done_callback(reap)

    async def execute(
        self,
        pipeline_name: str,
        pipeline_input: Union[PipelineInput, Mapping[str, Any]],
        *,
        use_cache: bool = True,
        timeout_ms: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Run a pipeline and return its result envelope.

        Args:
            pipeline_name: A registered pipeline
            pipeline_input: PipelineInput, or a mapping validated into one
            use_cache: Read and write the pipeline's result cache
            timeout_ms: Overrides the default timeout
            on_progress: Sync or async callback for ProgressEvents

        Returns:
            PipelineResult; never raises
        """
        started = time.perf_counter()
        run_id = create_run_id()

        if self._closed:
            return await self._failure(run_id, pipeline_name, "Orchestrator is shut down")

        pipeline = self._pipelines.get(pipeline_name)
        if pipeline is None:
            return await self._failure(
                run_id,
                pipeline_name,
                f"Unknown pipeline: {pipeline_name}",
                {"available": self.pipeline_names},
            )

        if not isinstance(pipeline_input, PipelineInput):
            try:
                pipeline_input = PipelineInput.model_validate(pipeline_input)
            except ValidationError as e:
                return await self._failure(
                    run_id,
                    pipeline_name,
                    "Invalid pipeline input",
                    {"errors": [err["msg"] for err in e.errors()]},
                )

        missing = pipeline.missing_inputs(pipeline_input)
        if missing:
            return await self._failure(
                run_id,
                pipeline_name,
                f"Missing required inputs: {', '.join(missing)}",
                {"missing": missing},
            )

        cache = self._cache_for(pipeline)
        key = fingerprint(pipeline_name, pipeline_input)
        if use_cache:
            hit = cache.get(key)
            if hit is not None:
                await self._audit.log_cache_hit(run_id, pipeline_name, cache.name)
                return hit.as_cached()

        timeout_ms = timeout_ms or self.default_timeout_ms
        await self._audit.log_run_started(run_id, pipeline_name)

        async def on_node_error(error: NodeError) -> None:
            await self._audit.log_node_failed(run_id, pipeline_name, error.phase, error.message)

        async def run_graph():
            return await pipeline.graph.invoke(
                pipeline.initial_state(pipeline_input),
                on_node_error=on_node_error,
            )

        # No awaits between registering the run and entering the try block
        self._active[run_id] = ActiveRun(run_id=run_id, pipeline=pipeline_name)
        task = asyncio.ensure_future(run_graph())
        ticker = None
        if on_progress is not None:
            ticker = asyncio.ensure_future(self._tick(run_id, pipeline, on_progress))

        try:
            graph_result = await asyncio.wait_for(asyncio.shield(task), timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            # The caller gave up; the graph run goes on unobserved
            self._active.pop(run_id, None)
            self._abandon(task)
            logger.warning("pipeline_caller_cancelled", run_id=run_id, pipeline=pipeline_name)
            raise
        except asyncio.TimeoutError:
            self._active.pop(run_id, None)
            self._abandon(task)
            timeout = PipelineTimeoutError(pipeline_name, timeout_ms)
            logger.warning("pipeline_timed_out", run_id=run_id, pipeline=pipeline_name, timeout_ms=timeout_ms)
            await self._audit.log_run_timed_out(run_id, pipeline_name, timeout_ms)
            return PipelineResult.failure(str(timeout), {"run_id": run_id, "timeout_ms": timeout_ms})
        except Exception as e:
            self._active.pop(run_id, None)
            logger.error("pipeline_crashed", run_id=run_id, pipeline=pipeline_name, error=str(e))
            await self._audit.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"pipeline": pipeline_name},
                run_id=run_id,
            )
            return PipelineResult.failure(f"Pipeline execution failed: {e}", {"run_id": run_id})
        finally:
            if ticker is not None:
                ticker.cancel()

        if self._active.pop(run_id, None) is None:
            await self._audit.log_run_cancelled(run_id, pipeline_name)
            return PipelineResult.failure("Run was cancelled", {"run_id": run_id})

        metadata = ResultMetadata(
            run_id=run_id,
            pipeline=pipeline_name,
            execution_time_ms=(time.perf_counter() - started) * 1000,
            phases=graph_result.metadata.phases,
            errors=graph_result.errors,
            started_at=graph_result.metadata.started_at,
        )
        result = PipelineResult.ok(pipeline.output(graph_result.state), metadata)

        if use_cache and not graph_result.has_errors:
            cache.set(key, result.model_copy(deep=True))

        if on_progress is not None:
            await self._emit(on_progress, ProgressEvent(
                run_id=run_id,
                pipeline=pipeline_name,
                stage="complete",
                progress=100,
                message="Analysis complete",
                summary=pipeline.summarize(graph_result.state),
            ))

        await self._audit.log_run_completed(
            run_id,
            pipeline_name,
            metadata.execution_time_ms,
            len(metadata.errors),
        )
        return result

    # =========================================================================
    # RUN MANAGEMENT
    # =========================================================================

    def cancel(self, run_id: str) -> bool:
        """
        Drop a run's bookkeeping entry.

        Nodes already scheduled still run; the run discards its result.
        Returns False for unknown or finished runs.
        """
        return self._active.pop(run_id, None) is not None

    def get_run_status(self, run_id: str) -> Optional[RunStatus]:
        run = self._active.get(run_id)
        return run.status if run else None

    @property
    def active_runs(self) -> list[ActiveRun]:
        return list(self._active.values())

    def cache_stats(self) -> dict[str, Any]:
        return {
            "lru": self._lru.stats(),
            "ttl": self._ttl.stats(),
            "active_runs": len(self._active),
        }

    async def clear_cache(self) -> int:
        """Empty both caches. Returns the number of entries removed."""
        cleared = self._lru.clear() + self._ttl.clear()
        await self._audit.log_cache_cleared(cleared)
        return cleared

    def health_check(self) -> dict[str, Any]:
        settings = validate_all_settings()
        return {
            "status": "closed" if self._closed else "healthy",
            "pipelines": self.pipeline_names,
            "active_runs": len(self._active),
            "abandoned_runs": len(self._abandoned),
            "llm_enabled": self._services.synthesizer.has_provider,
            "settings": {name: settings[name] for name in ("engine", "analysis", "gemini")},
            "cache": self.cache_stats(),
        }

    async def shutdown(self) -> None:
        """Cancel abandoned runs and clear every registry."""
        for task in list(self._abandoned):
            task.cancel()
        if self._abandoned:
            await asyncio.gather(*self._abandoned, return_exceptions=True)
        self._abandoned.clear()
        self._active.clear()
        self._lru.clear()
        self._ttl.clear()
        self._pipelines.clear()
        self._closed = True
        logger.info("orchestrator_shutdown")


def create_orchestrator(
    use_llm: bool = True,
    audit_sink: Optional[AuditSink] = None,
    provider: Optional[InsightProvider] = None,
    seed: Optional[int] = None,
    **options: Any,
) -> Orchestrator:
    """
    Factory function to create a fully wired orchestrator.

    Args:
        use_llm: Try to configure the Gemini insight agent.
                 Without an API key the engine runs on templates.
        audit_sink: Where audit events are kept, besides the local log
        provider: An InsightProvider to use instead of Gemini
        seed: Monte Carlo seed for reproducible runs
        **options: Passed to Orchestrator (timeouts, cache sizes, clock)
    """
    audit_logger = AuditLogger(audit_sink)

    if provider is None and use_llm:
        try:
            provider = GeminiInsightAgent()
        except Exception as e:
            # LLM not configured - continue on templates
            logger.warning("llm_not_configured", error=str(e))
            provider = None

    services = AnalysisServices.create(
        provider=provider,
        audit_logger=audit_logger,
        seed=seed,
    )
    return Orchestrator(services=services, audit_logger=audit_logger, **options)
