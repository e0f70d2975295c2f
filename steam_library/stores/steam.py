"""
Steam Web API client for owned games, store descriptions and cover art.

Uses:
- IPlayerService/GetOwnedGames for the skeleton list
- store.steampowered.com/api/appdetails for short descriptions
- The Steam CDN for cover images, with fallback URL patterns
"""

import asyncio
import logging
import ssl
from typing import Any, Dict, List, Optional

import aiohttp
import certifi

from .base import (
    DESCRIPTION_LOADING,
    DESCRIPTION_UNAVAILABLE,
    LibraryItem,
    LibrarySource,
)
from steam_library.utils.metadata import strip_html_tags

logger = logging.getLogger(__name__)

OWNED_GAMES_URL = "https://api.steampowered.com/IPlayerService/GetOwnedGames/v1/"
APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"

# Tried in order; the first response that looks like a real image wins
IMAGE_URL_TEMPLATES = [
    "https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/library_600x900_2x.jpg",
    "https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/library_600x900.jpg",
    "https://shared.steamstatic.com/store_item_assets/steam/apps/{app_id}/library_600x900_2x.jpg",
    "https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/header.jpg",
]

# Anything smaller is an error page, not a cover
MIN_IMAGE_BYTES = 1000

REQUEST_TIMEOUT = 15.0


class SteamLibraryClient(LibrarySource):
    """Client for the Steam Web API and Steam CDN."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT, language: str = "english"):
        self.timeout = timeout
        self.language = language
        self.session: Optional[aiohttp.ClientSession] = None

    @property
    def source_name(self) -> str:
        return "steam"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=10)
            self.session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": "Mozilla/5.0"}
            )
        return self.session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Optional[Any]:
        session = await self._get_session()
        async with session.get(
            url,
            params=params,
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        ) as response:
            if response.status != 200:
                logger.warning(f"[Steam] {url} returned HTTP {response.status}")
                return None
            return await response.json(content_type=None)

    async def fetch_owned_list(self, api_key: str, steam_id: str) -> List[LibraryItem]:
        """Get owned games via GetOwnedGames (id, title, playtime only)."""
        if not api_key or not api_key.strip() or not steam_id or not steam_id.strip():
            logger.warning("[Steam] API key or Steam ID missing, not fetching library")
            return []

        params = {
            "key": api_key.strip(),
            "steamid": steam_id.strip(),
            "include_appinfo": "true",
            "format": "json",
        }

        try:
            data = await self._get_json(OWNED_GAMES_URL, params)
        except asyncio.TimeoutError:
            logger.error("[Steam] Timed out fetching owned games")
            return []
        except Exception as e:
            logger.error(f"[Steam] Error fetching owned games: {e}")
            return []

        if not isinstance(data, dict):
            return []

        response = data.get("response")
        games_json = response.get("games") if isinstance(response, dict) else None
        if not isinstance(games_json, list):
            logger.warning("[Steam] Response has no games (private profile or bad Steam ID?)")
            return []

        games = []
        for entry in games_json:
            if not isinstance(entry, dict) or entry.get("appid") is None:
                continue
            try:
                app_id = int(entry["appid"])
                playtime = max(0, int(entry.get("playtime_forever") or 0))
            except (TypeError, ValueError):
                logger.debug(f"[Steam] Skipping malformed entry: {entry}")
                continue
            games.append(LibraryItem(
                app_id=app_id,
                title=str(entry.get("name") or "Unknown Game"),
                playtime_minutes=playtime,
                description=DESCRIPTION_LOADING,
                image_path="",
            ))

        logger.info(f"[Steam] Fetched {len(games)} owned games")
        return games

    async def fetch_description(self, app_id: int) -> str:
        """Fetch the store short_description with markup stripped."""
        params = {"appids": str(app_id), "l": self.language}

        try:
            data = await self._get_json(APP_DETAILS_URL, params)
        except asyncio.TimeoutError:
            logger.debug(f"[Steam] Timed out fetching description for {app_id}")
            return DESCRIPTION_UNAVAILABLE
        except Exception as e:
            logger.debug(f"[Steam] Error fetching description for {app_id}: {e}")
            return DESCRIPTION_UNAVAILABLE

        if not isinstance(data, dict):
            return DESCRIPTION_UNAVAILABLE

        root = data.get(str(app_id))
        if not isinstance(root, dict) or not root.get("success"):
            return DESCRIPTION_UNAVAILABLE

        details = root.get("data")
        if not isinstance(details, dict):
            return DESCRIPTION_UNAVAILABLE

        description = details.get("short_description")
        text = strip_html_tags(description if isinstance(description, str) else "")
        return text or DESCRIPTION_UNAVAILABLE

    async def fetch_image_bytes(self, app_id: int) -> Optional[bytes]:
        """Download cover art, falling through IMAGE_URL_TEMPLATES."""
        session = await self._get_session()

        for template in IMAGE_URL_TEMPLATES:
            url = template.format(app_id=app_id)
            try:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.debug(f"[Steam] {url} -> HTTP {response.status}")
                        continue
                    content = await response.read()
            except asyncio.TimeoutError:
                logger.debug(f"[Steam] Timed out downloading {url}")
                continue
            except Exception as e:
                logger.debug(f"[Steam] Error downloading {url}: {e}")
                continue

            if len(content) < MIN_IMAGE_BYTES:
                logger.debug(f"[Steam] {url} too small ({len(content)} bytes), trying next source")
                continue
            return content

        logger.info(f"[Steam] No cover art found for {app_id}")
        return None
