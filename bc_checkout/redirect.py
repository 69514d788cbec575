"""
bc_checkout/redirect.py

ログイン付きリダイレクトURLの解決

処理フロー:
1. URL種別の検証（ネットワーク通信前）
2. redirect_urls を含めてカートを取得
3. 要求された種別のURLを抽出
4. カートが顧客に紐付いていれば、パス+クエリをリダイレクト先とする
   ログイントークンを発行し、{origin}/login/token/{token} に置き換える
"""

from typing import Any, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from bc_checkout import config
from bc_checkout.errors import InvalidArgument, MissingRedirectUrl, TransportError
from bc_checkout.logger import get_logger
from bc_checkout.models import CartSnapshot, UrlKind

logger = get_logger(__name__, service_name='redirect')


def validate_url_kind(url_kind: Union[UrlKind, str]) -> UrlKind:
    """
    URL種別を検証

    Raises:
        InvalidArgument: cart_url / checkout_url / embedded_checkout_url 以外
    """
    try:
        return UrlKind(url_kind)
    except (ValueError, TypeError):
        raise InvalidArgument(url_kind, UrlKind.values()) from None


def split_redirect_url(url: str) -> Tuple[str, str, str]:
    """
    URLを (origin, path, query) に分解

    pathが空の場合は "/"、queryは先頭の "?" を含む（無い場合は空文字）。

    Raises:
        ValueError: scheme または host が無い（絶対URLでない）
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Not an absolute URL: {url!r}")
    origin = f"{parts.scheme}://{parts.netloc}"
    path = parts.path or "/"
    query = f"?{parts.query}" if parts.query else ""
    return origin, path, query


class RedirectResolver:
    """チェックアウトIDとURL種別から最終的なリダイレクトURLを解決する"""

    def __init__(self, client, token_issuer):
        """
        Args:
            client: CheckoutClient（get_cart_with_redirect_urls を使用）
            token_issuer: TokenIssuer
        """
        self.client = client
        self.token_issuer = token_issuer

    async def fetch_snapshot(self, checkout_id: str) -> CartSnapshot:
        """redirect_urls を含めてカートを取得"""
        try:
            response = await self.client.get_cart_with_redirect_urls(checkout_id)
        except TransportError as e:
            logger.error(
                f"[RedirectResolver] Failed to fetch cart for checkout {checkout_id}: {e}"
            )
            raise

        return CartSnapshot.from_response(response)

    async def resolve(
        self,
        checkout_id: str,
        url_kind: Union[UrlKind, str],
        login_options: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        リダイレクトURLを解決

        Args:
            checkout_id: チェックアウトID
            url_kind: URL種別
            login_options: トークン発行時の追加オプション（変更されない）

        Returns:
            str: 顧客カートならログイントークン付きURL、ゲストカートなら元のURL

        Raises:
            InvalidArgument: URL種別が不正
            MissingRedirectUrl: 要求した種別のURLがカートに存在しない、
                または顧客カートのURLが絶対URLでない
            TransportError: カート取得に失敗
        """
        kind = validate_url_kind(url_kind)

        snapshot = await self.fetch_snapshot(checkout_id)

        redirect_url = snapshot.redirect_urls.get(kind.value)
        if not redirect_url:
            logger.warning(
                f"[RedirectResolver] {kind.value} not available for checkout {checkout_id}"
            )
            raise MissingRedirectUrl(checkout_id, kind.value)

        if snapshot.is_guest:
            logger.info(f"[RedirectResolver] Guest cart {checkout_id}, returning {kind.value} as-is")
            return redirect_url

        try:
            origin, path, query = split_redirect_url(redirect_url)
        except ValueError:
            logger.error(
                f"[RedirectResolver] {kind.value} for checkout {checkout_id} "
                f"is not an absolute URL: {redirect_url!r}"
            )
            raise MissingRedirectUrl(checkout_id, kind.value, url=redirect_url) from None

        options = {**(login_options or {}), "redirect_target": path + query}

        token = await self.token_issuer.issue_login_token(
            snapshot.customer_id,
            snapshot.channel_id,
            options
        )

        logger.info(
            f"[RedirectResolver] Wrapped {kind.value} for checkout {checkout_id} "
            f"in login token: customer_id={snapshot.customer_id}, channel_id={snapshot.channel_id}"
        )
        return f"{origin}{config.LOGIN_TOKEN_PATH}{token}"
