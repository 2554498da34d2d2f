"""Remote-call execution: retry policy and the stateful call wrapper."""

from leavedesk.execution.call import (
    CallPhase,
    CallResult,
    CallState,
    Failure,
    RemoteCall,
    Success,
    Superseded,
)
from leavedesk.execution.retry_strategy import RetryDecision, RetryPolicy

__all__ = [
    "CallPhase",
    "CallResult",
    "CallState",
    "Failure",
    "RemoteCall",
    "RetryDecision",
    "RetryPolicy",
    "Success",
    "Superseded",
]
