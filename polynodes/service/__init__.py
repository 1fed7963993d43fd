"""
Client side of the graph execution and persistence service.
"""

from .client import ServiceClient, ServiceError
from .dispatcher import RequestGate, ServiceDispatcher
from .models import ExecutionResult, ExecutionResults, GraphFile, ResultKind, SaveReceipt

__all__ = [
    "ExecutionResult",
    "ExecutionResults",
    "GraphFile",
    "RequestGate",
    "ResultKind",
    "SaveReceipt",
    "ServiceClient",
    "ServiceDispatcher",
    "ServiceError",
]
