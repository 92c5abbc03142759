"""MCP tool definitions for webset jobs.

    create_webset       Submit a webset job, returns a jobId immediately
    get_webset_status   Poll a webset job by jobId
"""

from mcp.types import Tool

_API_KEY = {
    "type": "string",
    "description": "Your Exa API key. Defaults to the server's configured key.",
}

WEBSET_TOOLS = [
    Tool(
        name="create_webset",
        description=(
            "Create a Webset using Exa's Websets API. Provide a search object and "
            "optional enrichments, externalId, and metadata.\n\n"
            "Webset creation can take many minutes. This tool returns a jobId right "
            "away; call get_webset_status with it to follow progress and fetch the "
            "results once the job is completed."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "apiKey": _API_KEY,
                "search": {
                    "type": "object",
                    "description": "Search parameters for the Webset",
                    "properties": {
                        "query": {
                            "type": "string",
                            "description": "Your search query. Required string describing what to look for.",
                        },
                        "count": {
                            "type": "integer",
                            "minimum": 1,
                            "description": "Number of items to find. Default: 10",
                        },
                        "entity": {
                            "type": "object",
                            "properties": {
                                "type": {"type": "string", "enum": ["company"]},
                            },
                            "description": "Entity the Webset will return results for",
                        },
                        "criteria": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {"description": {"type": "string"}},
                                "required": ["description"],
                            },
                            "description": "Criteria for evaluating results",
                        },
                    },
                    "required": ["query"],
                },
                "enrichments": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "description": {"type": "string"},
                            "format": {
                                "type": "string",
                                "enum": ["text", "date", "number", "options", "email", "phone"],
                            },
                            "options": {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "properties": {"label": {"type": "string"}},
                                    "required": ["label"],
                                },
                            },
                            "metadata": {"type": "object", "additionalProperties": {"type": "string"}},
                        },
                        "required": ["description"],
                    },
                    "description": "Array of enrichment objects",
                },
                "externalId": {
                    "type": "string",
                    "description": "External identifier for the Webset",
                },
                "metadata": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                    "description": "Metadata key-value pairs",
                },
            },
            "required": ["search"],
        },
    ),
    Tool(
        name="get_webset_status",
        description=(
            "Get the status of a Webset job started with create_webset. Returns "
            "status (pending, running, completed, failed), progress, and the "
            "Webset payload once completed or the error once failed."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "apiKey": _API_KEY,
                "jobId": {
                    "type": "string",
                    "description": "The jobId returned by create_webset",
                },
            },
            "required": ["jobId"],
        },
    ),
]
