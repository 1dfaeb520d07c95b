"""WebSocket: real-time channel for presence and live events."""
from fastapi import APIRouter, WebSocket

router = APIRouter(tags=["ws"])


@router.websocket("/ws")
async def realtime_ws(websocket: WebSocket):
    """Connect with ?userId=<id> (and optionally &token=<JWT> whose sub must match).

    Frames are JSON {"event": name, "data": payload} in both directions.
    """
    await websocket.accept()
    gateway = websocket.app.state.gateway
    await gateway.serve(
        websocket,
        websocket.query_params.get("userId"),
        websocket.query_params.get("token"),
    )
