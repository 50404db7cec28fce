"""TruckersMP server list proxy"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from ..services.truckersmp_service import TruckersMPService, get_truckersmp_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/servers", tags=["Servers"])


def sort_servers(servers: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Online servers only, ETS2 before other games, then by display order"""
    online = [server for server in servers if server.get("online")]
    return sorted(
        online,
        key=lambda server: (server.get("game") != "ETS2", server.get("displayorder") or 0),
    )


@router.get("")
async def get_servers(truckersmp: TruckersMPService = Depends(get_truckersmp_service)):
    """Get online TruckersMP servers"""
    servers = sort_servers(await truckersmp.get_servers())
    logger.debug(f"Returning {len(servers)} online servers")
    return {"servers": servers}
