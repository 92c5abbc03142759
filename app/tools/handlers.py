"""Tool handlers: route MCP tool calls to the job manager."""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List

from mcp.types import TextContent

from app.jobs.errors import JobNotFound, UpstreamError
from app.jobs.lifecycle import WebsetJobManager

logger = logging.getLogger(__name__)

_CREATE_FIELDS = ("search", "enrichments", "externalId", "metadata")


async def create_webset(manager: WebsetJobManager, arguments: Dict[str, Any]) -> Dict[str, Any]:
    search = arguments.get("search")
    if not isinstance(search, dict) or not isinstance(search.get("query"), str) or not search["query"]:
        return {"success": False, "error": "search.query is required"}

    params = {k: arguments[k] for k in _CREATE_FIELDS if arguments.get(k) is not None}
    job_id = await manager.submit(params, api_key=arguments.get("apiKey"))
    job = manager.registry.require(job_id)
    return {
        "success": True,
        "jobId": job_id,
        "status": job.status.value,
        "message": (
            "Webset creation started. Call get_webset_status with this jobId "
            "to check progress and fetch results."
        ),
    }


async def get_webset_status(manager: WebsetJobManager, arguments: Dict[str, Any]) -> Dict[str, Any]:
    job_id = arguments.get("jobId")
    if not isinstance(job_id, str) or not job_id:
        return {"success": False, "error": "jobId is required"}

    job = await manager.poll(job_id, api_key=arguments.get("apiKey"))
    return {
        "success": True,
        "jobId": job.id,
        "websetId": job.external_job_id,
        "status": job.status.value,
        "progress": job.progress,
        "result": job.result,
        "error": job.error,
    }


ToolHandler = Callable[[WebsetJobManager, Dict[str, Any]], Awaitable[Dict[str, Any]]]

TOOL_HANDLERS: Dict[str, ToolHandler] = {
    "create_webset": create_webset,
    "get_webset_status": get_webset_status,
}


async def call_tool(
    manager: WebsetJobManager, name: str, arguments: Dict[str, Any]
) -> List[TextContent]:
    """Run one tool call. Failures come back as ``success: false`` content."""
    handler = TOOL_HANDLERS.get(name)
    try:
        if handler is None:
            result = {"success": False, "error": f"Unknown tool: {name}"}
        else:
            result = await handler(manager, arguments or {})
    except JobNotFound as e:
        result = {"success": False, "error": e.message}
    except UpstreamError as e:
        logger.warning("Upstream error in tool %s: %s", name, e.message)
        result = {
            "success": False,
            "error": e.message,
            "errorType": type(e).__name__,
            "retryable": e.retryable,
            "jobId": e.job_id,
            "phase": e.phase,
        }

    return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]
