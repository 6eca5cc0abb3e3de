from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class NodeStatus(BaseModel):
    """Status badge shown under a node in the editor. All None clears it."""
    fill: Optional[str] = None
    shape: Optional[str] = None
    text: Optional[str] = None

    @property
    def is_clear(self) -> bool:
        return self.fill is None and self.shape is None and self.text is None


@dataclass
class NodeResult:
    """
    Outcome of one input message.

    success and failure are the messages sent on output 1 and output 2;
    error is the message reported to the host's done() callback.
    """
    success: Optional[Dict[str, Any]] = None
    failure: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def outputs(self) -> List[Optional[Dict[str, Any]]]:
        return [self.success, self.failure]
