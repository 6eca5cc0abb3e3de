"""
Process Link flow nodes.

Each node module exposes `execute(context) -> NodeResult` and
`validate(config)`, mirroring the host's input handler and deploy check.
"""

from .context import NodeContext
from .definitions import NodeResult, NodeStatus

__all__ = ["NodeContext", "NodeResult", "NodeStatus"]
