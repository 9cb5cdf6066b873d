"""State graph engine package."""

from futurefund.graph.channels import (
    Channel,
    concat_lists,
    merge_records,
    replace_latest,
)
from futurefund.graph.engine import (
    END,
    ERRORS_CHANNEL,
    START,
    CompiledGraph,
    GraphDefinitionError,
    GraphResult,
    NodeExecutionError,
    StateGraph,
)

__all__ = [
    "END",
    "ERRORS_CHANNEL",
    "START",
    "Channel",
    "CompiledGraph",
    "GraphDefinitionError",
    "GraphResult",
    "NodeExecutionError",
    "StateGraph",
    "concat_lists",
    "merge_records",
    "replace_latest",
]
