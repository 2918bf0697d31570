# cohort_scheduler/services/graph_client.py
import asyncio
import json
import time
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from cohort_scheduler.core.config import get_graph_settings
from cohort_scheduler.core.errors import ConfigurationError
from cohort_scheduler.core.exceptions import GraphAPIError, MissingJoinUrlException
from cohort_scheduler.core.logging import logger
from cohort_scheduler.schemas.recording import Recording

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
RECORDINGS_FOLDER = "Recordings"

# Refresh the token this many seconds before Graph says it expires
TOKEN_EXPIRY_MARGIN = 60

REQUIRED_SETTINGS = {
    "tenant_id": "MS_TENANT_ID",
    "client_id": "MS_CLIENT_ID",
    "client_secret": "MS_CLIENT_SECRET",
    "organizer_user_id": "MS_ORGANIZER_USER_ID",
}

transient_retry = retry(
    retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=10),
    reraise=True
)


def load_graph_config(config: Optional[dict] = None) -> dict:
    """Return Graph settings, raising ConfigurationError naming every missing variable."""
    config = config or get_graph_settings()
    missing = [env for key, env in REQUIRED_SETTINGS.items() if not config.get(key)]
    if missing:
        raise ConfigurationError(
            message="Missing Microsoft Graph configuration",
            details={"missing": missing}
        )
    return config


class GraphTokenProvider:
    """OAuth2 client-credentials token for the app registration, cached until near expiry."""

    def __init__(self, config: dict):
        self.config = config
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.get("timeout") or 30)

    async def get_token(self) -> str:
        if self._token and time.monotonic() < self._expires_at:
            return self._token

        url = TOKEN_URL_TEMPLATE.format(tenant_id=self.config["tenant_id"])
        form = {
            "client_id": self.config["client_id"],
            "client_secret": self.config["client_secret"],
            "scope": GRAPH_SCOPE,
            "grant_type": "client_credentials",
        }
        try:
            data = await self._request_token(url, form)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Graph token request failed: {str(e)}")
            raise ConfigurationError(
                message="Failed to obtain Microsoft Graph access token",
                details={"reason": str(e)}
            )

        token = data.get("access_token")
        if not token:
            logger.error(f"Graph token response had no access_token: {data}")
            raise ConfigurationError(
                message="Failed to obtain Microsoft Graph access token",
                details={"reason": data.get("error_description") or data.get("error") or "no access_token"}
            )

        expires_in = int(data.get("expires_in", 3600))
        self._token = token
        self._expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        logger.info("Obtained Microsoft Graph access token")
        return token

    @transient_retry
    async def _request_token(self, url: str, form: Dict[str, str]) -> Dict[str, Any]:
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(url, data=form) as response:
                return await response.json(content_type=None)


class GraphClient:
    """Authenticated calls against the organizer's mailbox, meetings and drive."""

    def __init__(self, token_provider: GraphTokenProvider):
        self.token_provider = token_provider
        self.config = token_provider.config
        self.user_base = f"{GRAPH_BASE_URL}/users/{self.config['organizer_user_id']}"

    @classmethod
    def from_settings(cls, config: Optional[dict] = None) -> "GraphClient":
        return cls(GraphTokenProvider(load_graph_config(config)))

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        payload: Optional[dict] = None
    ) -> Dict[str, Any]:
        token = await self.token_provider.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        status, body = await self._send(method, url, headers, payload)
        if status < 200 or status >= 300:
            logger.error(f"{operation} returned HTTP {status}: {body[:300]}")
            raise GraphAPIError(operation, status, body)
        if not body:
            return {}
        return json.loads(body)

    @transient_retry
    async def _send(self, method: str, url: str, headers: dict, payload: Optional[dict]):
        async with aiohttp.ClientSession(timeout=self.token_provider.timeout) as session:
            async with session.request(method, url, headers=headers, json=payload) as response:
                return response.status, await response.text()

    # Meeting provider

    async def create_calendar_event(
        self,
        subject: str,
        start: datetime,
        end: datetime,
        attendees: List[str]
    ) -> str:
        """Create a calendar event with an online meeting (and its chat); returns the join URL."""
        timezone_name = self.config.get("timezone")
        payload = {
            "subject": subject,
            "start": {"dateTime": start.strftime("%Y-%m-%dT%H:%M:%S"), "timeZone": timezone_name},
            "end": {"dateTime": end.strftime("%Y-%m-%dT%H:%M:%S"), "timeZone": timezone_name},
            "isOnlineMeeting": True,
            "onlineMeetingProvider": "teamsForBusiness",
            "attendees": [
                {"emailAddress": {"address": email}, "type": "required"}
                for email in attendees
            ],
            "responseRequested": False,
            "allowNewTimeProposals": False,
        }
        data = await self._request("POST", f"{self.user_base}/events", "Create calendar event", payload)
        join_url = (data.get("onlineMeeting") or {}).get("joinUrl")
        if not join_url:
            raise MissingJoinUrlException("Calendar event created but no join URL returned")
        return join_url

    async def find_online_meeting_id(self, join_url: str) -> Optional[str]:
        url = f"{self.user_base}/onlineMeetings?$filter=JoinWebUrl%20eq%20'{quote(join_url, safe='')}'"
        data = await self._request("GET", url, "Find online meeting")
        meetings = data.get("value") or []
        return meetings[0].get("id") if meetings else None

    async def enable_auto_recording(self, meeting_id: str) -> None:
        await self._request(
            "PATCH",
            f"{self.user_base}/onlineMeetings/{meeting_id}",
            "Enable auto-recording",
            {"recordAutomatically": True}
        )

    async def create_online_meeting(self, subject: str, start: datetime, end: datetime) -> str:
        """Create a standalone meeting (no calendar invites) with recording on; returns the join URL."""
        payload = {
            "startDateTime": start.isoformat(),
            "endDateTime": end.isoformat(),
            "subject": subject,
            "lobbyBypassSettings": {
                "scope": "everyone",
                "isDialInBypassEnabled": True,
            },
            "autoAdmittedUsers": "everyone",
            "allowedPresenters": "everyone",
            "recordAutomatically": True,
        }
        data = await self._request("POST", f"{self.user_base}/onlineMeetings", "Create online meeting", payload)
        join_url = data.get("joinWebUrl")
        if not join_url:
            raise MissingJoinUrlException("Online meeting created but no join URL returned")
        return join_url

    # Recording store

    async def list_recordings(self) -> List[Recording]:
        folder = await self._request(
            "GET",
            f"{self.user_base}/drive/root:/{RECORDINGS_FOLDER}",
            "Resolve Recordings folder"
        )
        folder_id = folder.get("id")
        if not folder_id:
            return []
        children = await self._request(
            "GET",
            f"{self.user_base}/drive/items/{folder_id}/children",
            "List recordings"
        )
        return [
            Recording(
                id=item["id"],
                name=item.get("name", ""),
                web_url=item.get("webUrl"),
                created_date_time=item.get("createdDateTime"),
            )
            for item in children.get("value") or []
            if item.get("id")
        ]

    async def create_share_link(self, item_id: str) -> Optional[str]:
        data = await self._request(
            "POST",
            f"{self.user_base}/drive/items/{item_id}/createLink",
            "Create share link",
            {"type": "view", "scope": "anonymous"}
        )
        return (data.get("link") or {}).get("webUrl")
