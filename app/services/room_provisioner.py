"""
Room Provisioning Service client (VideoSDK.live REST API).

Allocates reusable meeting rooms and short-lived join tokens. Calls carry an
explicit timeout; any failure raises UpstreamError. Whether a failed room
allocation degrades to a locally generated room id is decided by the caller
through RoomFallbackPolicy, not here.
"""
import enum
import logging
import secrets
import string
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Optional

import httpx

from app.core.config import (
    VIDEOSDK_API_KEY,
    VIDEOSDK_API_ENDPOINT,
    VIDEOSDK_TIMEOUT_SECONDS,
    VIDEOSDK_TOKEN_TTL_SECONDS,
    ROOM_FALLBACK_POLICY,
)
from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)

ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits


class RoomFallbackPolicy(str, enum.Enum):
    """What to do when room allocation fails."""
    FAIL = "fail"
    DEGRADE = "degrade"


def configured_fallback_policy() -> RoomFallbackPolicy:
    try:
        return RoomFallbackPolicy(ROOM_FALLBACK_POLICY.lower())
    except ValueError:
        logger.warning(f"Unknown ROOM_FALLBACK_POLICY={ROOM_FALLBACK_POLICY!r}, using 'degrade'")
        return RoomFallbackPolicy.DEGRADE


def generate_local_room_id() -> str:
    """Locally derived stand-in room id, e.g. 'interview-k3j9x0a1b'."""
    suffix = "".join(secrets.choice(ROOM_ID_ALPHABET) for _ in range(9))
    return f"interview-{suffix}"


class RoomProvisioner(ABC):
    """Narrow interface the lifecycle engine depends on."""

    @abstractmethod
    def create_room(self, interview_id: int) -> str:
        """Allocate a room and return its id."""
        pass

    @abstractmethod
    def issue_token(self) -> str:
        """Return a short-lived join token."""
        pass


class VideoSDKRoomProvisioner(RoomProvisioner):
    """RoomProvisioner backed by the VideoSDK REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = VIDEOSDK_API_ENDPOINT,
        timeout: float = VIDEOSDK_TIMEOUT_SECONDS,
        token_ttl_seconds: int = VIDEOSDK_TOKEN_TTL_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key or VIDEOSDK_API_KEY
        self.token_ttl_seconds = token_ttl_seconds
        self.client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def create_room(self, interview_id: int) -> str:
        data = self._post("/rooms", json={"customRoomId": f"interview-{interview_id}"})
        room_id = data.get("roomId")
        if not room_id:
            logger.error(f"VideoSDK room response had no roomId: interview_id={interview_id}")
            raise UpstreamError("Room provisioning returned no room id")
        logger.info(f"VideoSDK room created: interview_id={interview_id}, room_id={room_id}")
        return room_id

    def issue_token(self) -> str:
        expire = int(time.time()) + self.token_ttl_seconds
        data = self._post("/token", json={"expire": expire})
        token = data.get("token")
        if not token:
            raise UpstreamError("Token service returned no token")
        return token

    def _post(self, path: str, json: dict) -> dict:
        if not self.api_key:
            raise UpstreamError("Video service is not configured")
        try:
            response = self.client.post(path, json=json, headers={"Authorization": self.api_key})
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"VideoSDK request timed out: path={path}")
            raise UpstreamError("Video service timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"VideoSDK request failed: path={path}, status={e.response.status_code}")
            raise UpstreamError("Video service request failed") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"VideoSDK request error: path={path}, error={type(e).__name__}: {e}", exc_info=True)
            raise UpstreamError("Video service is unavailable") from e

        if not isinstance(data, dict):
            logger.error(f"VideoSDK response was not an object: path={path}, type={type(data).__name__}")
            raise UpstreamError("Video service returned an unreadable response")
        return data


@lru_cache(maxsize=1)
def get_room_provisioner() -> RoomProvisioner:
    """FastAPI dependency; tests override it with a fake."""
    if not VIDEOSDK_API_KEY:
        logger.warning("VIDEOSDK_API_KEY not configured - room provisioning will fall back per policy")
    return VideoSDKRoomProvisioner()


def get_room_fallback_policy() -> RoomFallbackPolicy:
    """FastAPI dependency for the configured fallback policy."""
    return configured_fallback_policy()
