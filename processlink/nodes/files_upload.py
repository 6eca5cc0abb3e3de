"""
Process Link Files Upload Node

Uploads msg.payload to the Process Link Files API. Output 1 receives the
message with msg.file_id set, output 2 receives API and request failures.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

from processlink.config import settings
from processlink.errors import TransportError, ValidationError
from processlink.nodes import http
from processlink.nodes.context import ERROR_CLEAR_DELAY, SUCCESS_CLEAR_DELAY, NodeContext
from processlink.nodes.definitions import NodeResult

CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
PATH_SEPARATORS = re.compile(r"[/\\]")


def sanitize_filename(filename: str) -> str:
    """Make a filename safe for the multipart Content-Disposition header."""
    filename = PATH_SEPARATORS.sub("_", filename)
    filename = CONTROL_CHARS.sub("", filename)
    return filename[:255]


def _basename(path: str) -> str:
    return PATH_SEPARATORS.split(path)[-1]


def timestamp_prefix(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")


def resolve_filename(config: Dict[str, Any], msg: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """
    Node config filename wins. If it has no extension, the extension of
    msg.filename is appended. Without a config filename the basename of
    msg.filename is used, or "unknown-file".
    """
    msg_filename = msg.get("filename")
    if config.get("filename"):
        basename = config["filename"]
        if "." not in basename and msg_filename:
            match = re.search(r"\.[^.]+$", _basename(str(msg_filename)))
            if match:
                basename += match.group(0)
    else:
        basename = _basename(str(msg_filename or "unknown-file"))

    if config.get("timestampPrefix"):
        basename = f"{timestamp_prefix(now)}_{basename}"
    return basename


async def execute(context: NodeContext) -> NodeResult:
    config = context.config
    msg = context.msg
    server = context.require_api_key(require_site_id=True)

    payload = msg.get("payload")
    if isinstance(payload, (bytes, bytearray)):
        file_bytes = bytes(payload)
    elif isinstance(payload, str):
        file_bytes = payload.encode("utf-8")
    else:
        context.status(fill="red", shape="ring", text="invalid payload")
        raise ValidationError("msg.payload must be a Buffer or string")

    if len(file_bytes) > settings.MAX_UPLOAD_BYTES:
        context.status(fill="red", shape="ring", text="file too large")
        raise ValidationError(
            f"File exceeds maximum size of {settings.MAX_UPLOAD_BYTES // 1024 // 1024}MB"
        )

    filename = sanitize_filename(resolve_filename(config, msg))
    form: Dict[str, str] = {}
    if config.get("areaId"):
        form["areaId"] = str(config["areaId"])
    if config.get("folderId"):
        form["folderId"] = str(config["folderId"])

    api_url = (config.get("apiUrl") or settings.FILES_UPLOAD_URL).replace("{siteId}", str(server.site_id))

    context.status(fill="yellow", shape="dot", text="uploading...")
    try:
        response = await http.post(
            api_url,
            timeout=context.timeout_seconds(settings.NODE_REQUEST_TIMEOUT_MS),
            headers=server.bearer_headers(),
            files={"file": (filename, file_bytes, "application/octet-stream")},
            data=form or None,
        )
    except TransportError as e:
        return context.transport_failure(e)

    parsed = http.parse_body(response)
    msg["payload"] = parsed
    msg["statusCode"] = response.status_code
    msg["headers"] = dict(response.headers)

    if response.status_code == 201 and parsed.get("ok"):
        file_id = parsed.get("file_id")
        msg["file_id"] = file_id
        context.status(fill="green", shape="dot", text=f"uploaded: {str(file_id or '')[:8]}...")
        context.clear_status(SUCCESS_CLEAR_DELAY)
        return NodeResult(success=msg)

    # API errors go to output 2 without failing the node
    context.status(fill="red", shape="dot", text=http.error_message(parsed, response.status_code))
    context.clear_status(ERROR_CLEAR_DELAY)
    return NodeResult(failure=msg)


async def validate(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate node configuration before deploy.

    Returns:
        Dict with 'valid' (bool) and 'errors' (list)
    """
    errors = http.config_errors(config)
    return {"valid": len(errors) == 0, "errors": errors}
