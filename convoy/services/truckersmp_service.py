import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from ..config import PARTNER_VTC_IDS, TRUCKERSMP_API_URL, TRUCKERSMP_VTC_ID, UPSTREAM_TIMEOUT

logger = logging.getLogger(__name__)

UNKNOWN_ROLE_ORDER = 999
DEFAULT_ROLE_COLOR = "#757575"


class TruckersMPError(Exception):
    """Raised when the TruckersMP API fails or reports an error"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TruckersMPService:
    """Service for interacting with the TruckersMP API"""

    HEADERS = {
        "Accept": "application/json",
        "User-Agent": "Convoy-Booking-System/1.0",
        "Cache-Control": "no-cache",
    }

    def __init__(
        self,
        base_url: str = TRUCKERSMP_API_URL,
        vtc_id: str = TRUCKERSMP_VTC_ID,
        partner_ids: Optional[list[int]] = None,
        timeout: float = UPSTREAM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.vtc_id = vtc_id
        self.partner_ids = partner_ids if partner_ids is not None else PARTNER_VTC_IDS
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self.HEADERS, timeout=self.timeout, transport=self._transport
        )

    async def _get(self, path: str) -> Any:
        """GET an API path and return the ``response`` member of the payload"""
        url = f"{self.base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ TruckersMP {path} failed: HTTP {e.response.status_code}")
            raise TruckersMPError(
                f"TruckersMP request failed: {path}", status_code=e.response.status_code
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ TruckersMP {path} failed: {e}")
            raise TruckersMPError(f"TruckersMP request failed: {path}") from e

        if not isinstance(payload, dict) or payload.get("error"):
            logger.error(f"❌ TruckersMP {path} returned an error payload")
            raise TruckersMPError(f"TruckersMP reported an error: {path}")
        return payload.get("response")

    # Events

    async def get_vtc_events(self, vtc_id: Optional[str] = None) -> list[dict[str, Any]]:
        """Fetch the full event list of a VTC"""
        events = await self._get(f"/vtc/{vtc_id or self.vtc_id}/events")
        if not isinstance(events, list):
            raise TruckersMPError("Invalid response from TruckersMP API")
        logger.info(f"📥 Received {len(events)} events from TruckersMP")
        return events

    async def get_attending_events(self, vtc_id: Optional[str] = None) -> list[dict[str, Any]]:
        """Fetch events the VTC is attending"""
        return await self._get(f"/vtc/{vtc_id or self.vtc_id}/events/attending") or []

    async def get_event(self, event_id: str) -> Optional[dict[str, Any]]:
        return await self._get(f"/events/{event_id}")

    # Servers

    async def get_servers(self) -> list[dict[str, Any]]:
        return await self._get("/servers") or []

    # VTC

    async def get_vtc_members(self, vtc_id: str) -> list[dict[str, Any]]:
        data = await self._get(f"/vtc/{vtc_id}/members") or {}
        return data.get("members") or []

    async def get_vtc_roles(self, vtc_id: str) -> list[dict[str, Any]]:
        data = await self._get(f"/vtc/{vtc_id}/roles") or {}
        return data.get("roles") or []

    async def get_member_details(self, vtc_id: str, member_id: str) -> dict[str, Any]:
        return await self._get(f"/vtc/{vtc_id}/member/{member_id}")

    async def get_vtc_info(self, vtc_id: int) -> dict[str, Any]:
        return await self._get(f"/vtc/{vtc_id}")

    async def get_partners_info(self, vtc_ids: Optional[list[int]] = None) -> list[dict[str, Any]]:
        """Fetch public information of the partner VTCs"""
        partners = await asyncio.gather(
            *(self.get_vtc_info(vtc_id) for vtc_id in (vtc_ids or self.partner_ids))
        )
        return [
            {
                "id": partner.get("id"),
                "name": partner.get("name"),
                "logo": partner.get("logo"),
                "tag": partner.get("tag"),
                "owner": partner.get("owner_username") or partner.get("owner"),
                "memberCount": partner.get("members_count"),
                "recruitment": partner.get("recruitment"),
                "game": partner.get("game"),
                "information": partner.get("information"),
                "rules": partner.get("rules"),
                "requirements": partner.get("requirements"),
                "website": partner.get("website"),
                "discord": partner.get("discord"),
            }
            for partner in partners
        ]

    async def get_processed_vtc_data(self, vtc_id: str) -> dict[str, Any]:
        """Members grouped into departments by primary role, ordered by role order"""
        members, roles = await asyncio.gather(
            self.get_vtc_members(vtc_id), self.get_vtc_roles(vtc_id)
        )
        return build_vtc_overview(members, roles)


def _role_summary(role: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": role.get("id"),
        "name": role.get("name"),
        "order": role.get("order"),
        "color": role.get("color") or DEFAULT_ROLE_COLOR,
        "isOwner": role.get("owner"),
        "createdAt": role.get("created_at"),
        "updatedAt": role.get("updated_at"),
    }


def build_vtc_overview(members: list[dict[str, Any]], roles: list[dict[str, Any]]) -> dict[str, Any]:
    processed = [
        {
            "id": member.get("id"),
            "userId": member.get("user_id"),
            "username": member.get("username") or "",
            "steamId": member.get("steam_id"),
            "steamId64": member.get("steamID64"),
            "roles": [
                {
                    "id": role.get("id"),
                    "name": role.get("name"),
                    "permissionLevel": role.get("permission_level"),
                    "order": role.get("order"),
                    "color": role.get("color"),
                    "isManager": role.get("manager") == 1,
                    "createdAt": role.get("created_at"),
                    "updatedAt": role.get("updated_at"),
                }
                for role in member.get("roles") or []
            ],
            "primaryRole": member.get("role"),
            "isOwner": member.get("is_owner"),
            "joinDate": member.get("joinDate"),
        }
        for member in members
    ]

    departments: dict[str, list[dict[str, Any]]] = {}
    for member in processed:
        departments.setdefault(member["primaryRole"] or "Other", []).append(member)

    role_order = {role.get("name"): role.get("order") for role in roles}
    sorted_departments = {
        name: sorted(department, key=lambda m: m["username"].lower())
        for name, department in sorted(
            departments.items(),
            key=lambda item: role_order.get(item[0]) or UNKNOWN_ROLE_ORDER,
        )
    }

    return {
        "departments": sorted_departments,
        "totalMembers": len(members),
        "totalRoles": len(roles),
        "roles": [_role_summary(role) for role in roles],
        "lastUpdated": datetime.utcnow().isoformat() + "Z",
    }


def get_truckersmp_service() -> TruckersMPService:
    """Dependency injection for TruckersMPService"""
    return TruckersMPService()
