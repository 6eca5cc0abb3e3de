import asyncio
import logging
from typing import Any, Dict, List, Optional

from jinja2 import Template, TemplateError

from processlink.credentials.models import ProcessLinkConfig
from processlink.errors import ConfigurationError, RequestTimeoutError, describe_error
from processlink.nodes.definitions import NodeResult, NodeStatus

logger = logging.getLogger(__name__)

SUCCESS_CLEAR_DELAY = 5.0
ERROR_CLEAR_DELAY = 10.0


class NodeContext:
    """
    Execution context for one input message.

    Holds the node's editor configuration, the incoming message and the
    resolved config node, and records the status badges the node sets.
    """

    def __init__(
        self,
        node_id: str,
        config: Dict[str, Any],
        msg: Optional[Dict[str, Any]] = None,
        server: Optional[ProcessLinkConfig] = None,
    ):
        self.node_id = node_id
        self.config = config or {}
        self.msg = msg if msg is not None else {}
        self.server = server
        self.statuses: List[NodeStatus] = []

    @property
    def current_status(self) -> NodeStatus:
        return self.statuses[-1] if self.statuses else NodeStatus()

    def status(self, fill: str = None, shape: str = None, text: str = None) -> None:
        status = NodeStatus(fill=fill, shape=shape, text=text)
        self.statuses.append(status)
        if not status.is_clear:
            logger.debug(f"node {self.node_id}: [{fill}/{shape}] {text}")

    def clear_status(self, delay: float = 0) -> None:
        """Reset the status badge now, or after `delay` seconds on the running loop."""
        if delay <= 0:
            self.status()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.status()
            return
        loop.call_later(delay, self.status)

    def require_api_key(self, require_site_id: bool = False) -> ProcessLinkConfig:
        """
        Check the config node before any request is made.

        Raises:
            ConfigurationError: No config node, or it lacks the site id / API key
        """
        if self.server is None:
            self.status(fill="red", shape="ring", text="no config")
            raise ConfigurationError("No Process Link configuration selected")

        if require_site_id and not self.server.site_id:
            self.status(fill="red", shape="ring", text="config missing Site ID")
            raise ConfigurationError(
                "Site ID required for file operations. "
                "Add a Site ID to your Process Link config node."
            )

        if not self.server.api_key_value:
            self.status(fill="red", shape="ring", text="no API key")
            raise ConfigurationError("API Key not configured")

        return self.server

    def render(self, template_str: Any) -> Any:
        """Render a config string as a Jinja2 template against the message."""
        if not isinstance(template_str, str) or "{" not in template_str:
            return template_str
        try:
            return Template(template_str).render({"msg": self.msg, **self.msg})
        except TemplateError as e:
            logger.warning(f"node {self.node_id}: template error, using raw text: {e}")
            return template_str

    def timeout_seconds(self, default_ms: int) -> float:
        try:
            timeout_ms = int(self.config.get("timeout") or default_ms)
        except (TypeError, ValueError):
            timeout_ms = default_ms
        return (timeout_ms if timeout_ms > 0 else default_ms) / 1000

    def missing_field(self, label: str, field_name: str, detail: str = None) -> NodeResult:
        """Route a validation failure to output 2 and report it."""
        self.status(fill="red", shape="ring", text=label)
        self.msg["payload"] = {"error": f"Missing required field: {detail or field_name}"}
        return NodeResult(failure=self.msg, error=f"Missing required field: {field_name}")

    def transport_failure(self, error: BaseException) -> NodeResult:
        """Route a failed or timed-out request to output 2 and report it."""
        context = describe_error(error)
        logger.warning(f"node {self.node_id}: {context.message} ({context.category.value})")
        text = "timeout" if isinstance(error, RequestTimeoutError) else "request failed"
        self.status(fill="red", shape="ring", text=text)
        self.msg["payload"] = {"error": context.message}
        self.msg["statusCode"] = 0
        self.clear_status(ERROR_CLEAR_DELAY)
        return NodeResult(failure=self.msg, error=context.message)
