"""Stock photo search adapters (Unsplash and Pexels)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..models.exceptions import StockPhotoException

logger = logging.getLogger(__name__)

UNSPLASH_URL = "https://api.unsplash.com/photos/random"
PEXELS_URL = "https://api.pexels.com/v1/search"


@dataclass(frozen=True)
class StockPhoto:
    url: str
    attribution_name: str


class StockPhotoClient:
    """Base adapter: one GET per search, `None` when nothing matched."""

    provider = "stock"

    def __init__(self, api_key: Optional[str], http_client: httpx.AsyncClient,
                 timeout: Optional[float] = None):
        self.api_key = api_key
        self._http = http_client
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _request(self, keyword: str) -> Dict[str, Any]:
        raise NotImplementedError

    def _photo_from(self, data: Any) -> Optional[StockPhoto]:
        raise NotImplementedError

    async def search(self, keyword: str) -> Optional[StockPhoto]:
        if not self.api_key:
            raise StockPhotoException(self.provider, keyword, details={"reason": "not configured"})

        request = self._request(keyword)
        kwargs = {"timeout": self._timeout} if self._timeout is not None else {}
        try:
            resp = await self._http.get(request["url"], params=request["params"],
                                        headers=request["headers"], **kwargs)
        except httpx.HTTPError as e:
            raise StockPhotoException(self.provider, keyword, details={"reason": str(e)})

        # Unsplash answers 404 when a random query has no match
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StockPhotoException(self.provider, keyword, status_code=resp.status_code)

        try:
            return self._photo_from(resp.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.debug(f"{self.provider} response for '{keyword}' not usable: {e}")
            return None


class UnsplashClient(StockPhotoClient):
    provider = "Unsplash"

    def _request(self, keyword: str) -> Dict[str, Any]:
        return {
            "url": UNSPLASH_URL,
            "params": {"query": keyword, "orientation": "landscape"},
            "headers": {"Authorization": f"Client-ID {self.api_key}"},
        }

    def _photo_from(self, data: Any) -> Optional[StockPhoto]:
        url = data["urls"]["regular"]
        if not url:
            return None
        return StockPhoto(url=url, attribution_name=(data.get("user") or {}).get("name") or "Unknown")


class PexelsClient(StockPhotoClient):
    provider = "Pexels"

    def _request(self, keyword: str) -> Dict[str, Any]:
        return {
            "url": PEXELS_URL,
            "params": {"query": keyword, "per_page": 1, "orientation": "landscape"},
            "headers": {"Authorization": self.api_key},
        }

    def _photo_from(self, data: Any) -> Optional[StockPhoto]:
        photos = data.get("photos") or []
        if not photos:
            return None
        photo = photos[0]
        url = photo["src"]["large"]
        if not url:
            return None
        return StockPhoto(url=url, attribution_name=photo.get("photographer") or "Unknown")
