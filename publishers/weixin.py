"""WeChat official account publisher (draft box)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from config.resolver import PrioritizedConfigResolver
from core import Credential, PublishResult, PublishStatus
from storage.credential_cache import ExpiringCredentialCache, credential_from_ttl
from utils.exceptions import CredentialError, PublishError
from utils.http import describe_http_error, open_client

from .base import ContentPublisher


logger = logging.getLogger(__name__)

# invalid credential / access_token expired / invalid access_token
TOKEN_ERROR_CODES = {40001, 40014, 42001}


class WeixinPublisher(ContentPublisher):
    """
    Publishes to the draft box of a WeChat official account.

    The access token goes through an ``ExpiringCredentialCache``; a token the
    API rejects is invalidated and the call is retried once with a new one.
    """

    platform = "weixin"

    def __init__(
        self,
        resolver: PrioritizedConfigResolver,
        client: Optional[httpx.AsyncClient] = None,
        safety_margin: float = 60.0,
        timeout: float = 30.0,
    ) -> None:
        self.resolver = resolver
        self._client = client
        self.timeout = timeout
        self.token_cache = ExpiringCredentialCache(self._fetch_token, safety_margin=safety_margin, name="weixin-token")

    async def _base_url(self) -> str:
        return str(await self.resolver.get_or_default("WEIXIN_BASE_URL", "https://api.weixin.qq.com")).rstrip("/")

    async def _fetch_token(self) -> Credential:
        app_id = await self.resolver.get("WEIXIN_APP_ID")
        app_secret = await self.resolver.get("WEIXIN_APP_SECRET")
        params = {"grant_type": "client_credential", "appid": str(app_id), "secret": str(app_secret)}
        try:
            async with open_client(self._client, timeout=self.timeout) as client:
                response = await client.get(f"{await self._base_url()}/cgi-bin/token", params=params)
        except httpx.RequestError as exc:
            raise CredentialError(f"weixin token request failed: {exc}") from exc

        data: Dict[str, Any] = {}
        if response.status_code < 400:
            try:
                data = dict(response.json() or {})
            except ValueError as exc:
                raise CredentialError(f"weixin token response is not JSON: {describe_http_error(response)}") from exc
        token = data.get("access_token")
        if not token:
            detail = data.get("errmsg") or describe_http_error(response)
            raise CredentialError(f"weixin access_token missing: {detail}", {"errcode": data.get("errcode")})
        return credential_from_ttl(str(token), float(data.get("expires_in") or 7200))

    async def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        """Authenticated call; refreshes the token once on token errors."""
        for attempt in (1, 2):
            token = await self.token_cache.get()
            url = f"{await self._base_url()}{path}"
            params = dict(kwargs.pop("params", {}) or {})
            params["access_token"] = token
            try:
                async with open_client(self._client, timeout=self.timeout) as client:
                    response = await client.request(method, url, params=params, **kwargs)
            except httpx.RequestError as exc:
                raise PublishError(f"weixin request failed: {exc}", platform=self.platform) from exc
            if response.status_code >= 400:
                raise PublishError(f"weixin {describe_http_error(response)}", platform=self.platform)

            try:
                data = dict(response.json() or {})
            except ValueError as exc:
                raise PublishError(
                    f"weixin response is not JSON: {describe_http_error(response)}", platform=self.platform
                ) from exc
            errcode = int(data.get("errcode") or 0)
            if errcode in TOKEN_ERROR_CODES and attempt == 1:
                logger.warning("weixin rejected access token (errcode=%s), refreshing", errcode)
                self.token_cache.invalidate()
                kwargs["params"] = {k: v for k, v in params.items() if k != "access_token"}
                continue
            if errcode:
                raise PublishError(
                    f"weixin error {errcode}: {data.get('errmsg')}",
                    platform=self.platform,
                    errcode=errcode,
                )
            return data
        raise PublishError("weixin access token rejected twice", platform=self.platform)

    async def upload_image(self, url: str) -> str:
        """Download ``url`` and store it as permanent image material."""
        try:
            async with open_client(self._client, timeout=self.timeout) as client:
                response = await client.get(url, follow_redirects=True)
        except httpx.RequestError as exc:
            raise PublishError(f"image download failed: {exc}", platform=self.platform) from exc
        if response.status_code >= 400:
            raise PublishError(f"image download {describe_http_error(response)}", platform=self.platform)

        content_type = response.headers.get("content-type", "image/png").split(";")[0]
        extension = content_type.rsplit("/", 1)[-1] or "png"
        files = {"media": (f"cover.{extension}", response.content, content_type)}
        data = await self._call("POST", "/cgi-bin/material/add_material", params={"type": "image"}, files=files)

        media_id = data.get("media_id")
        if not media_id:
            raise PublishError("weixin upload returned no media_id", platform=self.platform)
        logger.info("uploaded cover image as media %s", media_id)
        return str(media_id)

    async def publish(
        self,
        document: str,
        title: str,
        digest: str,
        cover_asset_id: Optional[str] = None,
    ) -> PublishResult:
        author = await self.resolver.get_or_default("WEIXIN_AUTHOR", "")
        article = {
            "title": title,
            "author": str(author or ""),
            "digest": digest,
            "content": document,
            "need_open_comment": 1,
            "only_fans_can_comment": 0,
        }
        if cover_asset_id:
            article["thumb_media_id"] = cover_asset_id

        # the API stores \uXXXX escapes literally, so send raw UTF-8
        body = json.dumps({"articles": [article]}, ensure_ascii=False).encode("utf-8")
        data = await self._call(
            "POST",
            "/cgi-bin/draft/add",
            content=body,
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        media_id = data.get("media_id")
        if not media_id:
            raise PublishError("weixin draft returned no media_id", platform=self.platform)

        return PublishResult(
            id=str(media_id),
            status=PublishStatus.DRAFT,
            platform=self.platform,
        )
