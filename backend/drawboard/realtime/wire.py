import json

CONNECTED = 'connected'
HEARTBEAT = 'heartbeat'

# SSE comment line: proxies see traffic, EventSource clients ignore it
SSE_HEARTBEAT = ': heartbeat\n\n'


def connected_payload(connection_id: str) -> dict:
    return {'kind': CONNECTED, 'connectionId': connection_id}


def sse_frame(payload: dict) -> str:
    """One record per ``data:`` line, compact JSON so it never spans lines."""
    return f"data: {json.dumps(payload, separators=(',', ':'))}\n\n"
