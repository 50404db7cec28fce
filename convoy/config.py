import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL")

# Token signing - no insecure fallback, the process refuses to start without it
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))

_missing = [name for name, value in (("DATABASE_URL", DATABASE_URL), ("JWT_SECRET", JWT_SECRET)) if not value]
if _missing:
    raise RuntimeError(f"Missing required environment variables: {', '.join(_missing)}")

# Frontend / CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",") if origin.strip()
]
PORT = int(os.getenv("PORT", "5000"))

# TruckersMP API
TRUCKERSMP_API_URL = os.getenv("TRUCKERSMP_API_URL", "https://api.truckersmp.com/v2").rstrip("/")
TRUCKERSMP_VTC_ID = os.getenv("TRUCKERSMP_VTC_ID", "70030")
# Indian Truckers, Indian Carriers, Indian Group, Lumo Haul, Aura
PARTNER_VTC_IDS = [
    int(vtc_id) for vtc_id in os.getenv("PARTNER_VTC_IDS", "19885,64218,76045,79072,75200").split(",") if vtc_id.strip()
]
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "15"))

# Slot images must be hosted on one of these domains
ALLOWED_IMAGE_HOSTS = [
    host.strip().lower() for host in os.getenv("ALLOWED_IMAGE_HOSTS", "imgur.com").split(",") if host.strip()
]

# Discord notifications (all optional)
DISCORD_WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL")
DISCORD_MENTION_ROLE_IDS = [
    role_id.strip() for role_id in os.getenv("DISCORD_MENTION_ROLE_IDS", "").split(",") if role_id.strip()
]
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")
DISCORD_GUILD_ID = os.getenv("DISCORD_GUILD_ID")
ADMIN_PANEL_URL = os.getenv("ADMIN_PANEL_URL", f"{FRONTEND_URL}/admin")
NOTIFICATION_TIMEOUT = float(os.getenv("NOTIFICATION_TIMEOUT", "10"))
