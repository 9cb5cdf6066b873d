"""
State Graph Engine

A small sequential executor over named state channels.

DESIGN DECISION: A failing node never aborts the run.
When a node raises, the engine appends a NodeError {phase, message,
timestamp} to the `errors` channel, leaves every other channel as it
was, and moves on to the next node. Every pipeline relies on this:
later nodes check for the inputs they need and degrade when missing.

Nodes receive a read-only view of the state and return a partial
update (a mapping of channel name to value). Nodes may be plain
functions or coroutines. The edge list must form a single linear path
from START to END; it is checked once at compile time.

There is no rollback and no cooperative cancellation point between nodes.
"""

import inspect
import time
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import structlog

from futurefund.graph.channels import Channel, concat_lists
from futurefund.models.execution import ExecutionMetadata, NodeError, PhaseRecord


logger = structlog.get_logger(__name__)

START = "__start__"
END = "__end__"
ERRORS_CHANNEL = "errors"

NodeUpdate = Optional[Mapping[str, Any]]
NodeFn = Callable[[Mapping[str, Any]], Union[NodeUpdate, Awaitable[NodeUpdate]]]
NodeErrorHook = Callable[[NodeError], Awaitable[None]]


class GraphDefinitionError(Exception):
    """The graph's nodes, edges or channels are inconsistent."""
    pass


class NodeExecutionError(Exception):
    """Raised by a node that cannot do its work (e.g., a missing prerequisite)."""

    def __init__(self, phase: str, message: str):
        self.phase = phase
        super().__init__(message)


class StateGraph:
    """
    Builder for a compiled graph.

    Usage:
        graph = StateGraph({"effects": Channel.value()}, name="analysis")
        graph.add_node("calculate", calculate)
        graph.add_edge(START, "calculate")
        graph.add_edge("calculate", END)
        compiled = graph.compile()
    """

    def __init__(self, channels: Mapping[str, Channel], name: str = "graph"):
        channels = dict(channels)
        errors = channels.get(ERRORS_CHANNEL)
        if errors is not None and errors.reducer is not concat_lists:
            raise GraphDefinitionError("The errors channel must concatenate")
        channels[ERRORS_CHANNEL] = Channel.appending()

        self.name = name
        self._channels = channels
        self._nodes: dict[str, NodeFn] = {}
        self._edges: dict[str, list[str]] = {}

    def add_node(self, name: str, fn: NodeFn) -> "StateGraph":
        if name in (START, END):
            raise GraphDefinitionError(f"'{name}' is a reserved node name")
        if name in self._nodes:
            raise GraphDefinitionError(f"Node '{name}' already exists")
        self._nodes[name] = fn
        return self

    def add_edge(self, source: str, target: str) -> "StateGraph":
        self._edges.setdefault(source, []).append(target)
        return self

    def compile(self) -> "CompiledGraph":
        """Check the edges form one path from START to END over every node."""
        order: list[str] = []
        current = START
        seen = {START}

        while current != END:
            targets = self._edges.get(current, [])
            if len(targets) != 1:
                raise GraphDefinitionError(
                    f"Node '{current}' must have exactly one outgoing edge, has {len(targets)}"
                )
            nxt = targets[0]
            if nxt in seen:
                raise GraphDefinitionError(f"Cycle detected at '{nxt}'")
            if nxt != END and nxt not in self._nodes:
                raise GraphDefinitionError(f"Edge points to unknown node '{nxt}'")
            seen.add(nxt)
            if nxt != END:
                order.append(nxt)
            current = nxt

        unreachable = set(self._nodes) - set(order)
        if unreachable:
            raise GraphDefinitionError(f"Unreachable nodes: {sorted(unreachable)}")

        return CompiledGraph(
            name=self.name,
            channels=MappingProxyType(dict(self._channels)),
            nodes=tuple((n, self._nodes[n]) for n in order),
        )


@dataclass(frozen=True)
class GraphResult:
    """Final state of a run plus its phase log."""

    state: Mapping[str, Any]
    metadata: ExecutionMetadata

    @property
    def errors(self) -> list[NodeError]:
        return list(self.metadata.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.metadata.errors)


@dataclass(frozen=True)
class CompiledGraph:
    name: str
    channels: Mapping[str, Channel]
    nodes: tuple[tuple[str, NodeFn], ...]

    @property
    def node_names(self) -> list[str]:
        return [name for name, _ in self.nodes]

    def initial_state(self, values: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        """Channel defaults, overridden by any provided initial values."""
        state = {name: channel.default() for name, channel in self.channels.items()}
        for key, value in (values or {}).items():
            if key not in self.channels:
                raise GraphDefinitionError(f"Unknown channel '{key}' in initial state")
            state[key] = value
        return state

    def _merge(self, phase: str, state: dict[str, Any], update: NodeUpdate) -> dict[str, Any]:
        """Apply a partial update. All-or-nothing: a bad key leaves state untouched."""
        if update is None:
            return state
        if not isinstance(update, Mapping):
            raise NodeExecutionError(
                phase, f"Node returned {type(update).__name__}, expected a mapping"
            )
        unknown = [key for key in update if key not in self.channels]
        if unknown:
            raise NodeExecutionError(phase, f"Node wrote undeclared channels: {unknown}")

        merged = dict(state)
        for key, value in update.items():
            merged[key] = self.channels[key].reducer(merged[key], value)
        return merged

    async def invoke(
        self,
        values: Optional[Mapping[str, Any]] = None,
        on_node_error: Optional[NodeErrorHook] = None,
    ) -> GraphResult:
        """
        Run every node in order and return the accumulated state.

        Args:
            values: Initial channel values
            on_node_error: Awaited with each captured NodeError

        Returns:
            GraphResult with a read-only final state and the phase log
        """
        started_at = datetime.utcnow()
        state = self.initial_state(values)
        phases: list[PhaseRecord] = []

        for name, fn in self.nodes:
            t0 = time.perf_counter()
            try:
                update = fn(MappingProxyType(state))
                if inspect.isawaitable(update):
                    update = await update
                state = self._merge(name, state, update)
                success = True
            except Exception as e:
                error = NodeError(phase=name, message=str(e) or e.__class__.__name__)
                state = {
                    **state,
                    ERRORS_CHANNEL: concat_lists(state[ERRORS_CHANNEL], [error]),
                }
                logger.warning(
                    "node_failed",
                    graph=self.name,
                    phase=name,
                    error=error.message,
                    error_type=e.__class__.__name__,
                )
                if on_node_error is not None:
                    await on_node_error(error)
                success = False

            phases.append(PhaseRecord(
                name=name,
                duration_ms=(time.perf_counter() - t0) * 1000,
                success=success,
            ))

        metadata = ExecutionMetadata(
            started_at=started_at,
            phases=phases,
            errors=list(state[ERRORS_CHANNEL]),
        )
        return GraphResult(state=MappingProxyType(state), metadata=metadata)
