"""
bc_checkout/transport.py

BigCommerce v3 APIへのHTTPトランスポート

Checkoutクライアントが依存する4つのプリミティブ（get/post/put/delete）を定義し、
httpx.AsyncClient上のデフォルト実装を提供する。
リトライ・ページネーションは行わない。
"""

import json
import time
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from bc_checkout import config
from bc_checkout.errors import ConfigurationError, TransportError
from bc_checkout.logger import get_logger, log_http_request, log_http_response
from bc_checkout.telemetry import get_tracer, create_http_span, mask_sensitive_data

logger = get_logger(__name__, service_name='transport')
tracer = get_tracer(__name__)


class Transport(Protocol):
    """Checkoutクライアントが必要とするHTTPプリミティブ"""

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any: ...

    async def post(
        self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None
    ) -> Any: ...

    async def put(
        self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None
    ) -> Any: ...

    async def delete(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any: ...


def encode_query_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    クエリパラメータをv3 APIの形式に変換

    - list/tuple/set はカンマ区切り文字列に結合（include=a,b）
    - None と空のリストは送信しない

    Args:
        params: 呼び出し側のパラメータ

    Returns:
        httpxに渡すクエリパラメータ
    """
    encoded: Dict[str, Any] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            encoded[key] = ",".join(str(v) for v in value)
        else:
            encoded[key] = value
    return encoded


class HttpTransport:
    """httpx.AsyncClient ベースのBigCommerce APIトランスポート

    すべてのリクエスト/レスポンスをログに記録し、
    HTTPエラーを TransportError に変換する。

    使用例:
        async with HttpTransport(store_hash="abc123", access_token="...") as transport:
            client = CheckoutClient(transport)
            cart = await client.get_cart("cart-id")
    """

    def __init__(
        self,
        store_hash: Optional[str] = None,
        access_token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Args:
            store_hash: ストアハッシュ（省略時は BIGCOMMERCE_STORE_HASH）
            access_token: APIアクセストークン（省略時は BIGCOMMERCE_ACCESS_TOKEN）
            api_url: APIのベースURL（省略時は BIGCOMMERCE_API_URL）
            timeout: タイムアウト時間（秒）
            http_client: 既存のhttpx.AsyncClientインスタンス（オプション）
        """
        self.store_hash = store_hash or config.STORE_HASH
        self.access_token = access_token or config.ACCESS_TOKEN
        if not self.store_hash:
            raise ConfigurationError("BigCommerce store hash is not configured")
        if not self.access_token:
            raise ConfigurationError("BigCommerce access token is not configured")

        api_url = (api_url or config.API_URL).rstrip("/")
        self.base_url = f"{api_url}/stores/{self.store_hash}"
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT

        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.timeout)

        logger.info(f"[HttpTransport] Initialized: {self.base_url}")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-Auth-Token": self.access_token,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(
        self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._request("POST", path, body=body, params=params)

    async def put(
        self, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self._request("PUT", path, body=body, params=params)

    async def delete(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("DELETE", path, params=params)

    async def _request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """HTTPリクエストを送信し、パース済みのレスポンスボディを返す

        Args:
            method: HTTPメソッド
            path: リソースパス（例: "/v3/carts/{id}"）
            body: JSONボディ（GET/DELETEでは未使用）
            params: クエリパラメータ

        Returns:
            パース済みJSON（204/空ボディの場合はNone）

        Raises:
            TransportError: HTTPエラー（ステータス/通信）またはJSONでないレスポンス
        """
        url = f"{self.base_url}{path}"
        query = encode_query_params(params)
        headers = self.headers

        log_http_request(logger, method, url, headers=headers, params=query, body=body)

        request_kwargs: Dict[str, Any] = {"params": query, "headers": headers}
        if body is not None:
            request_kwargs["json"] = body

        start_time = time.time()
        try:
            with create_http_span(tracer, method, url, **{"bc.store_hash": self.store_hash}) as span:
                if body is not None:
                    span.set_attribute(
                        "http.request.body",
                        json.dumps(mask_sensitive_data(body), ensure_ascii=False, default=str)
                    )
                response = await self.http_client.request(method, url, **request_kwargs)
                span.set_attribute("http.status_code", response.status_code)
                response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            message = _error_message(e.response)
            logger.error(f"[HttpTransport] {method} {path} failed with {status_code}: {message}")
            raise TransportError(status_code, message, method=method, path=path) from e

        except httpx.HTTPError as e:
            logger.error(f"[HttpTransport] {method} {path} failed: {e}", exc_info=True)
            raise TransportError(None, str(e) or type(e).__name__, method=method, path=path) from e

        duration_ms = (time.time() - start_time) * 1000
        result = None
        if response.status_code != 204 and response.content:
            try:
                result = response.json()
            except ValueError as e:
                logger.error(
                    f"[HttpTransport] {method} {path} returned non-JSON body "
                    f"({response.status_code}): {response.text[:200]}"
                )
                raise TransportError(
                    response.status_code, "Invalid JSON response", method=method, path=path
                ) from e

        log_http_response(
            logger,
            status_code=response.status_code,
            headers=dict(response.headers),
            body=result,
            duration_ms=duration_ms
        )

        return result

    async def close(self):
        """所有しているHTTPクライアントをクローズ"""
        if self._owns_client:
            await self.http_client.aclose()
            logger.info("[HttpTransport] Closed HTTP client")

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def _error_message(response: httpx.Response) -> str:
    """v3 APIのエラーボディ（title/detail）からメッセージを抽出"""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase

    if isinstance(payload, dict):
        for key in ("title", "detail", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return response.reason_phrase
