"""
Process Link Notify Group Node

Sends a notification to a ProcessMail notification group. ProcessMail fans
out to email/SMS according to each member's preferences.
"""

from typing import Any, Dict

from processlink.config import settings
from processlink.errors import TransportError
from processlink.nodes import http
from processlink.nodes.context import ERROR_CLEAR_DELAY, SUCCESS_CLEAR_DELAY, NodeContext
from processlink.nodes.definitions import NodeResult
from processlink.nodes.mail import message_attachments, payload_text


async def execute(context: NodeContext) -> NodeResult:
    config = context.config
    msg = context.msg
    server = context.require_api_key()

    group_key = config.get("groupKey") or msg.get("group_key")
    subject = context.render(config.get("subject")) or msg.get("subject")
    body = context.render(config.get("body")) or msg.get("body") or msg.get("payload")
    body_type = config.get("bodyType") or msg.get("bodyType") or "text"

    # Template wrapping is on unless either side turns it off
    use_template = config.get("useTemplate") is not False and msg.get("useTemplate") is not False
    link_only = config.get("linkOnly") is True or msg.get("linkOnly") is True
    attachments = message_attachments(msg)

    if not group_key:
        return context.missing_field("missing group key", "group_key")
    if not subject:
        return context.missing_field("missing subject", "subject")
    if not body:
        return context.missing_field("missing body", "body")

    request_body: Dict[str, Any] = {
        "group_key": group_key,
        "subject": subject,
        "body": payload_text(body),
        "bodyType": body_type,
        "useTemplate": use_template,
    }
    if attachments:
        request_body["fileLinks" if link_only else "attachments"] = attachments

    context.status(fill="yellow", shape="dot", text=f"notifying {group_key}...")

    try:
        response = await http.post(
            config.get("apiUrl") or settings.NOTIFY_GROUP_URL,
            timeout=context.timeout_seconds(settings.NODE_REQUEST_TIMEOUT_MS),
            headers=server.bearer_headers(),
            json=request_body,
        )
    except TransportError as e:
        return context.transport_failure(e)

    parsed = http.parse_body(response)
    msg["statusCode"] = response.status_code

    if response.status_code == 200 and parsed.get("ok"):
        sent = parsed.get("notifications_sent") or {}
        msg["payload"] = {
            "ok": True,
            "group_key": parsed.get("group_key") or group_key,
            "notifications_sent": sent,
            "total_recipients": parsed.get("total_recipients") or 0,
            "message_ids": parsed.get("message_ids") or [],
        }
        if parsed.get("failures"):
            msg["payload"]["failures"] = parsed["failures"]
        msg["group_key"] = parsed.get("group_key") or group_key

        context.status(
            fill="green",
            shape="dot",
            text=f"{sent.get('email', 0)} email, {sent.get('sms', 0)} sms",
        )
        context.clear_status(SUCCESS_CLEAR_DELAY)
        return NodeResult(success=msg)

    error_msg = http.error_message(parsed, response.status_code)
    msg["payload"] = {"ok": False, "error": error_msg, "code": parsed.get("code")}
    context.status(fill="red", shape="dot", text=error_msg)
    context.clear_status(ERROR_CLEAR_DELAY)
    return NodeResult(failure=msg, error=error_msg)


async def validate(config: Dict[str, Any]) -> Dict[str, Any]:
    errors = http.config_errors(config)

    group_key = config.get("groupKey")
    if group_key and not isinstance(group_key, str):
        errors.append("'groupKey' must be a string")

    return {"valid": len(errors) == 0, "errors": errors}
