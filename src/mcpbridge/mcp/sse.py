"""Decoding of server-sent-event framed JSON-RPC replies.

Some MCP servers answer every request as an event stream regardless of the
``Accept`` header the client sends. The reply we want is the last ``data:``
block in the stream; earlier blocks are progress noise.
"""

import json
from typing import Any, Optional

EVENT_STREAM_CONTENT_TYPE = "text/event-stream"


def looks_like_event_stream(content_type: Optional[str], body: str) -> bool:
    """Return True if a response should be decoded as an event stream.

    Either the content type says so, or the body contains ``data:`` lines
    (servers that stream without setting the header).
    """
    if content_type and EVENT_STREAM_CONTENT_TYPE in content_type.lower():
        return True
    return any(line.lstrip().startswith("data:") for line in body.splitlines())


def iter_data_blocks(body: str) -> list[str]:
    """Split an event-stream body into the data payload of each event.

    Multiple ``data:`` lines within one event are joined with newlines, as
    the event-stream format prescribes. Comment lines and other fields are
    ignored.
    """
    blocks: list[str] = []
    current: list[str] = []

    for raw_line in body.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            if current:
                blocks.append("\n".join(current))
                current = []
            continue
        if line.startswith(":"):
            continue
        if line.startswith("data:"):
            value = line[len("data:") :]
            if value.startswith(" "):
                value = value[1:]
            current.append(value)

    # Trailing event without a terminating blank line
    if current:
        blocks.append("\n".join(current))

    return blocks


def parse_event_stream(body: str) -> Any:
    """Return the JSON value of the last parseable ``data:`` block.

    Args:
        body: Raw response text

    Returns:
        The decoded JSON value

    Raises:
        ValueError: If no block decodes as JSON
    """
    for block in reversed(iter_data_blocks(body)):
        try:
            return json.loads(block)
        except json.JSONDecodeError:
            continue
    raise ValueError("no parseable data block in event stream")
