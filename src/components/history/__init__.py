"""
History component - Member history logging and querying.
"""

from .component import InMemoryHistoryRepo, run_log_history, run_query_history
from .models import (
    HistoryListOutput,
    HistoryValidationError,
    LogHistoryInput,
    LogHistoryOutput,
    QueryHistoryInput,
)
from .ports import HistoryRepoPort, TimePort

__all__ = [
    # Entry points
    "run_log_history",
    "run_query_history",
    # Models
    "HistoryListOutput",
    "HistoryValidationError",
    "LogHistoryInput",
    "LogHistoryOutput",
    "QueryHistoryInput",
    # Ports
    "HistoryRepoPort",
    "TimePort",
    # In-memory repo
    "InMemoryHistoryRepo",
]
