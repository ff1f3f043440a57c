"""Spotify Web API client for finding a playable link to a carol.

Uses the OAuth2 client-credentials flow. Lookups never fail the caller:
every error degrades to None.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from feastfinder.domain.errors import AuthenticationFailedError, ExternalServiceError, ServiceError
from feastfinder.domain.interfaces.cache import CacheService
from feastfinder.domain.models.common import CacheKey, CachePrefix, make_cache_key
from feastfinder.infrastructure.http.auth_handler import basic_credentials
from feastfinder.infrastructure.resilience.api_retry import wrap_error

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE_URL = "https://api.spotify.com/v1"
TOKEN_CACHE_KEY = CacheKey("spotify-access-token")
URL_CACHE_PREFIX = CachePrefix("spotify-url")
URL_CACHE_TTL_S = 20 * 60
TOKEN_EXPIRY_BUFFER_S = 60
REQUEST_TIMEOUT_S = 5.0
OPEN_SPOTIFY_PREFIX = "https://open.spotify.com/"


@dataclass
class SpotifyAccessToken:
    access_token: str
    token_type: str
    expires_in: int
    obtained_at: float

    def is_fresh(self, now: float) -> bool:
        return now - self.obtained_at < self.expires_in - TOKEN_EXPIRY_BUFFER_S


def extract_spotify_url(search_response: Dict[str, Any]) -> Optional[str]:
    """Returns the first track's open.spotify.com URL, or None."""
    try:
        url = search_response["tracks"]["items"][0]["external_urls"]["spotify"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(url, str) and url.startswith(OPEN_SPOTIFY_PREFIX):
        return url
    return None


class SpotifyClient:
    """Looks up carols on Spotify, caching tokens and found URLs."""

    def __init__(
        self,
        cache: CacheService,
        client_id: Optional[str],
        client_secret: Optional[str],
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.cache = cache
        self.client_id = client_id
        self.client_secret = client_secret
        self._http = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT_S)
        if not (client_id and client_secret):
            logger.warning("Spotify credentials not configured; carol links disabled.")

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def get_access_token(self) -> SpotifyAccessToken:
        cached = await self.cache.get(TOKEN_CACHE_KEY)
        if isinstance(cached, SpotifyAccessToken) and cached.is_fresh(time.time()):
            return cached

        if not self.enabled:
            raise AuthenticationFailedError("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET are required")

        try:
            response = await self._http.post(
                TOKEN_URL,
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": f"Basic {basic_credentials(self.client_id, self.client_secret)}",
                },
                content="grant_type=client_credentials",
                timeout=REQUEST_TIMEOUT_S,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise wrap_error(e, "Spotify token request failed") from e

        try:
            token = SpotifyAccessToken(
                access_token=data["access_token"],
                token_type=data.get("token_type", "Bearer"),
                expires_in=int(data["expires_in"]),
                obtained_at=time.time(),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExternalServiceError(f"Spotify token response malformed: {e}") from e
        await self.cache.set(TOKEN_CACHE_KEY, token, ttl=token.expires_in)
        logger.debug(f"Obtained Spotify access token (expires in {token.expires_in}s)")
        return token

    async def search_track(self, query: str, access_token: str) -> Dict[str, Any]:
        try:
            response = await self._http.get(
                f"{API_BASE_URL}/search",
                params={"q": query, "type": "track", "limit": 1, "offset": 0},
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=REQUEST_TIMEOUT_S,
            )
        except httpx.HTTPError as e:
            raise wrap_error(e, "Spotify search request failed") from e

        if response.status_code == 401:
            raise AuthenticationFailedError("Spotify API authentication failed")
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            suffix = f". Retry after {retry_after} seconds" if retry_after else ""
            raise ExternalServiceError(f"Spotify API rate limit exceeded{suffix}")
        if response.is_error:
            raise ExternalServiceError(f"Spotify search request failed: {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError("Spotify search returned invalid JSON") from e

    async def find_carol_url(self, carol_name: Optional[str]) -> Optional[str]:
        """Returns a Spotify track URL for the carol, or None.

        Found URLs are cached; misses are not, so a later call can succeed.
        A 401 drops the cached token and retries the search once.
        """
        if not carol_name or not carol_name.strip():
            return None
        name = carol_name.strip()
        cache_key = make_cache_key(URL_CACHE_PREFIX, name.lower())

        cached_url = await self.cache.get(cache_key)
        if cached_url:
            return cached_url

        try:
            try:
                token = await self.get_access_token()
                url = extract_spotify_url(await self.search_track(name, token.access_token))
            except AuthenticationFailedError:
                if not self.enabled:
                    raise
                logger.info("Spotify rejected the access token; refreshing once.")
                await self.cache.delete(TOKEN_CACHE_KEY)
                token = await self.get_access_token()
                url = extract_spotify_url(await self.search_track(name, token.access_token))
        except ServiceError as e:
            logger.error(f"Spotify search error for '{name}': {e.message}")
            return None

        if url:
            await self.cache.set(cache_key, url, ttl=URL_CACHE_TTL_S)
        return url
