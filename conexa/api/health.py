from fastapi import APIRouter, Depends

from conexa.deps import get_gateway
from conexa.services.gateway import RealtimeGateway

router = APIRouter(tags=["health"])


@router.get("/health")
def health(gateway: RealtimeGateway = Depends(get_gateway)):
    return {"status": "ok", "connections": gateway.connection_count}
