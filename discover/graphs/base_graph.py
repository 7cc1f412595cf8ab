"""Base class for LangGraph graphs to share common behavior."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from langgraph.graph import StateGraph

from discover.utils.logging_config import logger


class BaseGraph(ABC):
    """Abstract base class for all LangGraph implementations.

    Centralizes logging and deadline handling and provides a consistent
    compile pattern so graph subclasses focus on node logic.
    """

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self.logger = logger

    @abstractmethod
    def build_graph(self) -> StateGraph:
        """Build and return the StateGraph instance."""

    def _deadline_from_now(self) -> float:
        return time.time() + self.timeout

    @staticmethod
    def _deadline_passed(state: dict) -> bool:
        deadline = state.get("deadline_at")
        return deadline is not None and time.time() > deadline

    def _log_node_execution(self, node_name: str, state: dict) -> None:
        """Log node execution start with minimal state context."""

        self.logger.debug("Executing node: %s", node_name)

    def _log_node_error(self, node_name: str, error: Exception) -> None:
        """Log node execution error without leaking user data."""

        self.logger.error("Node %s failed: %s", node_name, str(error))

    def compile(self):
        """Build and compile the graph for execution."""

        graph = self.build_graph()
        return graph.compile()
