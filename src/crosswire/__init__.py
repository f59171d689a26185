"""crosswire: cross-chain configuration reconciliation and read resolution."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("crosswire")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from crosswire.api import (
    configure,
    extract_time_markers,
    load_graph,
    resolve_command,
    resolve_timestamps,
    sign_and_send,
)
from crosswire.codes import ErrorCode
from crosswire.errors import CrosswireError
from crosswire.kernel.graph import Edge, Graph, Node
from crosswire.kernel.points import ChainPoint, Vector
from crosswire.kernel.transactions import SignAndSendResult, Transaction
from crosswire.retry import RetryPolicy

__all__ = [
    "__version__",
    "load_graph",
    "configure",
    "sign_and_send",
    "resolve_command",
    "extract_time_markers",
    "resolve_timestamps",
    "ChainPoint",
    "Vector",
    "Node",
    "Edge",
    "Graph",
    "Transaction",
    "SignAndSendResult",
    "RetryPolicy",
    "CrosswireError",
    "ErrorCode",
]
