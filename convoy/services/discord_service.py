"""
Discord notifications for slot bookings.

Two channels are used:
- a channel webhook that receives new requests and status changes
- an optional bot token used to direct-message the requester about the decision
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import httpx

from ..config import (
    ADMIN_PANEL_URL,
    DISCORD_BOT_TOKEN,
    DISCORD_GUILD_ID,
    DISCORD_MENTION_ROLE_IDS,
    DISCORD_WEBHOOK_URL,
    NOTIFICATION_TIMEOUT,
)

logger = logging.getLogger(__name__)

DISCORD_API_URL = "https://discord.com/api/v10"
WEBHOOK_PREFIXES = ("https://discord.com/api/webhooks/", "https://discordapp.com/api/webhooks/")
FOOTER_TEXT = "VTC Convoy Booking System"

COLOR_APPROVED = 0x00FF00
COLOR_REJECTED = 0xFF0000
COLOR_PENDING = 0xFFA500


@dataclass
class BookingNotice:
    """Snapshot of a booking taken when the notification is scheduled"""

    event_title: str
    slot_number: int
    vtc_name: str
    name: str
    status: str
    vtc_role: Optional[str] = None
    vtc_link: Optional[str] = None
    discord_username: Optional[str] = None


def status_color(status: str) -> int:
    if status == "approved":
        return COLOR_APPROVED
    if status == "rejected":
        return COLOR_REJECTED
    return COLOR_PENDING


class DiscordNotifier:
    """Sends booking notifications to Discord"""

    def __init__(
        self,
        webhook_url: Optional[str] = DISCORD_WEBHOOK_URL,
        bot_token: Optional[str] = DISCORD_BOT_TOKEN,
        guild_id: Optional[str] = DISCORD_GUILD_ID,
        mention_role_ids: Optional[list[str]] = None,
        admin_url: str = ADMIN_PANEL_URL,
        timeout: float = NOTIFICATION_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.bot_token = bot_token
        self.guild_id = guild_id
        self.mention_role_ids = (
            mention_role_ids if mention_role_ids is not None else DISCORD_MENTION_ROLE_IDS
        )
        self.admin_url = admin_url
        self.timeout = timeout
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, **kwargs)

    def _webhook_ready(self) -> bool:
        if not self.webhook_url:
            logger.warning("⚠️ Discord webhook URL not configured - skipping notification")
            return False
        if not self.webhook_url.startswith(WEBHOOK_PREFIXES):
            logger.error("❌ Invalid Discord webhook URL format - skipping notification")
            return False
        return True

    async def _post_webhook(self, payload: dict[str, Any]) -> bool:
        async with self._client() as client:
            response = await client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        logger.info(f"✅ Discord webhook delivered (HTTP {response.status_code})")
        return True

    # ------------------------------------------------------------------
    # Channel webhook
    # ------------------------------------------------------------------

    def build_booking_payload(self, notice: BookingNotice) -> dict[str, Any]:
        fields = [
            {"name": "Event", "value": notice.event_title or "N/A", "inline": True},
            {"name": "Slot Number", "value": f"#{notice.slot_number}", "inline": True},
            {"name": "VTC Name", "value": notice.vtc_name or "N/A", "inline": True},
            {"name": "Contact Person", "value": notice.name or "N/A", "inline": True},
            {"name": "VTC Role", "value": notice.vtc_role or "N/A", "inline": True},
            {"name": "Status", "value": (notice.status or "pending").capitalize(), "inline": True},
        ]
        if notice.vtc_link:
            fields.append(
                {"name": "VTC Profile", "value": f"[View on TruckersMP]({notice.vtc_link})", "inline": False}
            )
        fields.append(
            {"name": "Take action", "value": f"[Manage slot booking]({self.admin_url})", "inline": True}
        )

        payload: dict[str, Any] = {
            "embeds": [
                {
                    "title": f"🎮 Slot Booking Request from {notice.vtc_name} for {notice.event_title}",
                    "color": COLOR_APPROVED,
                    "fields": fields,
                    "timestamp": datetime.utcnow().isoformat() + "Z",
                    "footer": {"text": FOOTER_TEXT},
                }
            ]
        }
        if self.mention_role_ids:
            payload["content"] = " ".join(f"<@&{role_id}>" for role_id in self.mention_role_ids)
        return payload

    def build_status_payload(self, notice: BookingNotice) -> dict[str, Any]:
        return {
            "embeds": [
                {
                    "title": "🔄 Booking Status Update",
                    "color": status_color(notice.status),
                    "fields": [
                        {"name": "Event", "value": notice.event_title or "N/A", "inline": True},
                        {"name": "Slot Number", "value": f"#{notice.slot_number}", "inline": True},
                        {"name": "VTC Name", "value": notice.vtc_name or "N/A", "inline": True},
                        {"name": "New Status", "value": notice.status.capitalize(), "inline": True},
                    ],
                    "timestamp": datetime.utcnow().isoformat() + "Z",
                    "footer": {"text": FOOTER_TEXT},
                }
            ]
        }

    async def send_booking_notification(self, notice: BookingNotice) -> bool:
        """Announce a new slot request in the booking channel"""
        if not self._webhook_ready():
            return False
        logger.info(f"📨 Sending booking notification for slot #{notice.slot_number} ({notice.vtc_name})")
        return await self._post_webhook(self.build_booking_payload(notice))

    async def send_booking_status_update(self, notice: BookingNotice) -> bool:
        """Announce an approval or rejection in the booking channel"""
        if not self._webhook_ready():
            return False
        logger.info(f"📨 Sending status update for slot #{notice.slot_number}: {notice.status}")
        return await self._post_webhook(self.build_status_payload(notice))

    # ------------------------------------------------------------------
    # Bot direct messages
    # ------------------------------------------------------------------

    async def send_direct_message(self, discord_username: str, message: str) -> bool:
        """
        Direct-message a guild member by username.
        Returns False when the bot is not configured or the member is not found.
        """
        if not self.bot_token or not self.guild_id:
            logger.debug("Discord bot not configured - skipping direct message")
            return False

        # username#1234 -> username
        username = discord_username.split("#")[0].strip().lower()
        if not username:
            return False

        headers = {"Authorization": f"Bot {self.bot_token}"}
        async with self._client(base_url=DISCORD_API_URL, headers=headers) as client:
            response = await client.get(
                f"/guilds/{self.guild_id}/members/search",
                params={"query": username, "limit": 10},
            )
            response.raise_for_status()
            member = next(
                (
                    m
                    for m in response.json()
                    if (m.get("user") or {}).get("username", "").lower() == username
                ),
                None,
            )
            if not member:
                logger.warning(f"⚠️ Discord user {username} not found in the guild")
                return False

            channel = await client.post(
                "/users/@me/channels", json={"recipient_id": member["user"]["id"]}
            )
            channel.raise_for_status()
            sent = await client.post(
                f"/channels/{channel.json()['id']}/messages", json={"content": message}
            )
            sent.raise_for_status()

        logger.info(f"✅ Direct message sent to {username}")
        return True

    async def send_status_direct_message(self, notice: BookingNotice) -> bool:
        """Tell the requester whether their booking was approved or rejected"""
        if not notice.discord_username:
            return False
        if notice.status == "approved":
            message = f"🎉 Your booking for slot {notice.slot_number} in event \"{notice.event_title}\" has been approved!"
        else:
            message = f"❌ Your booking for slot {notice.slot_number} in event \"{notice.event_title}\" has been rejected."
        return await self.send_direct_message(notice.discord_username, message)


def get_notifier() -> DiscordNotifier:
    """Dependency injection for DiscordNotifier"""
    return DiscordNotifier()
