"""
Process Link Mail Node

Sends email through the ProcessMail API. Values set on the node win over
values carried by the message.
"""

import json
from typing import Any, Dict, List, Optional

from processlink.config import settings
from processlink.errors import TransportError
from processlink.nodes import http
from processlink.nodes.context import ERROR_CLEAR_DELAY, SUCCESS_CLEAR_DELAY, NodeContext
from processlink.nodes.definitions import NodeResult


def payload_text(payload: Any) -> Optional[str]:
    if payload is None:
        return None
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, separators=(",", ":"), default=str)


def message_attachments(msg: Dict[str, Any]) -> Optional[List[Any]]:
    """msg.attachments, or a single attachment built from an upstream upload's file_id."""
    attachments = msg.get("attachments")
    if not attachments and msg.get("file_id"):
        attachments = [{"fileId": msg["file_id"]}]
    if isinstance(attachments, list) and attachments:
        return attachments
    return None


async def execute(context: NodeContext) -> NodeResult:
    config = context.config
    msg = context.msg
    server = context.require_api_key()

    to = context.render(config.get("to")) or msg.get("to")
    subject = context.render(config.get("subject")) or msg.get("subject") or msg.get("topic")
    body = context.render(config.get("body")) or payload_text(msg.get("payload"))
    body_type = config.get("bodyType") or msg.get("bodyType") or "text"

    cc = config.get("cc") or msg.get("cc")
    bcc = config.get("bcc") or msg.get("bcc")
    reply_to = config.get("replyTo") or msg.get("replyTo")
    attachments = message_attachments(msg)

    if not to:
        return context.missing_field("missing 'to'", "to")
    if not subject:
        return context.missing_field("missing subject", "subject")
    if not body:
        return context.missing_field("missing body", "body", detail="body (msg.payload)")

    request_body: Dict[str, Any] = {
        "to": to,
        "subject": subject,
        "body": body,
        "bodyType": body_type,
    }
    if cc:
        request_body["cc"] = cc
    if bcc:
        request_body["bcc"] = bcc
    if reply_to:
        request_body["replyTo"] = reply_to
    if attachments:
        request_body["attachments"] = attachments

    recipient_label = to[0] if isinstance(to, list) and to else to
    context.status(fill="yellow", shape="dot", text="sending...")

    try:
        response = await http.post(
            config.get("apiUrl") or settings.MAIL_SEND_URL,
            timeout=context.timeout_seconds(settings.NODE_REQUEST_TIMEOUT_MS),
            headers=server.bearer_headers(),
            json=request_body,
        )
    except TransportError as e:
        return context.transport_failure(e)

    parsed = http.parse_body(response)
    msg["statusCode"] = response.status_code

    if response.status_code == 200 and parsed.get("ok"):
        msg["payload"] = {
            "ok": True,
            "status": parsed.get("status") or "sent",
            "email_id": parsed.get("email_id"),
            "resend_id": parsed.get("resend_id"),
            "attachments_count": parsed.get("attachments_count") or 0,
        }
        if parsed.get("log_warning"):
            msg["payload"]["log_warning"] = parsed["log_warning"]
        msg["email_id"] = parsed.get("email_id")
        msg["resend_id"] = parsed.get("resend_id")
        context.status(fill="green", shape="dot", text=f"sent to {recipient_label}")
        context.clear_status(SUCCESS_CLEAR_DELAY)
        return NodeResult(success=msg)

    error_msg = http.error_message(parsed, response.status_code)
    msg["payload"] = {"ok": False, "error": error_msg, "code": parsed.get("code")}
    context.status(fill="red", shape="dot", text=error_msg)
    context.clear_status(ERROR_CLEAR_DELAY)
    return NodeResult(failure=msg, error=error_msg)


async def validate(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate mail node configuration.

    Recipient, subject and body may all come from the message, so only
    values that are set are checked.
    """
    errors = http.config_errors(config)

    to = config.get("to")
    if to and "@" not in to and "{" not in to:
        errors.append("'to' must be a valid email address")

    body_type = config.get("bodyType")
    if body_type and body_type not in ("text", "html"):
        errors.append("'bodyType' must be 'text' or 'html'")

    return {"valid": len(errors) == 0, "errors": errors}
