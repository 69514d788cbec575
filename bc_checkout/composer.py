"""
bc_checkout/composer.py

Cart/Checkout APIのリクエスト組み立て

各エンドポイントは (パス, クエリ, ボディ) を組み立ててトランスポートに委譲するだけの
薄いメソッド。ボディは検証せずにそのまま送信する（スキーマ検証はサーバー側の責務）。
"""

from typing import Any, Iterable, Mapping, Optional, Set, Union
from urllib.parse import quote

from bc_checkout import config
from bc_checkout.logger import get_logger
from bc_checkout.login_token import CustomerLoginTokenIssuer
from bc_checkout.models import UrlKind
from bc_checkout.redirect import RedirectResolver
from bc_checkout.transport import Transport

logger = get_logger(__name__, service_name='composer')

Identifier = Union[str, int]

OPTION_SELECTION_INCLUDES = frozenset({
    "line_items.physical_items.options",
    "line_items.digital_items.options",
})
CHECKOUT_OPTION_SELECTION_INCLUDES = frozenset(
    f"cart.{token}" for token in OPTION_SELECTION_INCLUDES
)
REDIRECT_URL_INCLUDES = frozenset({"redirect_urls"})
SHIPPING_OPTION_INCLUDES = frozenset({"consignments.available_shipping_options"})


def _as_include_set(include: Any) -> Set[str]:
    """include の値（カンマ区切り文字列、トークンの集合、またはスカラー）をsetに正規化"""
    if include is None:
        return set()
    if isinstance(include, str):
        return {token.strip() for token in include.split(",") if token.strip()}
    if isinstance(include, Iterable):
        return {str(token) for token in include}
    # スカラー値は単一トークン
    return {str(include)}


def build_include_params(
    base_includes: Iterable[str],
    caller_params: Optional[Mapping[str, Any]] = None
) -> dict:
    """
    ベースのinclude集合と呼び出し側パラメータをマージ

    入力は変更せず、新しいdictを返す。include 以外のフィールドはそのまま引き継ぐ。

    Args:
        base_includes: ヘルパーが要求するincludeトークン
        caller_params: 呼び出し側のクエリパラメータ（Noneは空として扱う）

    Returns:
        include がベースと呼び出し側の和集合（ソート済みリスト）に置き換えられたパラメータ
    """
    params = dict(caller_params or {})
    params["include"] = sorted(_as_include_set(base_includes) | _as_include_set(params.get("include")))
    return params


def _segment(value: Identifier) -> str:
    return quote(str(value), safe="")


def cart_path(cart_id: Identifier, *parts: Identifier) -> str:
    """/v3/carts/{cart_id}[/parts...]"""
    return "/".join([config.BASE_CART_PATH, _segment(cart_id), *(_segment(p) for p in parts)])


def checkout_path(checkout_id: Identifier, *parts: Identifier) -> str:
    """/v3/checkouts/{checkout_id}[/parts...]"""
    return "/".join([config.BASE_CHECKOUT_PATH, _segment(checkout_id), *(_segment(p) for p in parts)])


class CheckoutClient:
    """BigCommerce Cart/Checkout APIクライアント

    トランスポート（get/post/put/delete）を受け取り、
    エンドポイントごとのリクエストを組み立てて委譲する。
    インスタンスは識別子以外の状態を持たないため、並行呼び出しが可能。

    使用例:
        client = CheckoutClient(HttpTransport())
        cart = await client.get_cart_with_redirect_urls(cart_id)
        url = await client.get_checkout_redirect_with_login(cart_id, "checkout_url")
    """

    def __init__(self, transport: Transport, token_issuer=None):
        """
        Args:
            transport: HTTPトランスポート
            token_issuer: ログイントークン発行者（省略時は環境変数の認証情報で生成）
        """
        self.transport = transport
        self.token_issuer = token_issuer

    # ========================================
    # Carts
    # ========================================

    async def get_cart(self, cart_id: Identifier, params: Optional[Mapping[str, Any]] = None) -> Any:
        """カートを取得（例: params={"include": "redirect_urls"}）"""
        return await self.transport.get(cart_path(cart_id), params)

    async def get_cart_with_option_selections(
        self, cart_id: Identifier, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """オプション選択を含めてカートを取得"""
        return await self.get_cart(cart_id, build_include_params(OPTION_SELECTION_INCLUDES, params))

    async def get_cart_with_redirect_urls(
        self, cart_id: Identifier, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """リダイレクトURLを含めてカートを取得"""
        return await self.get_cart(cart_id, build_include_params(REDIRECT_URL_INCLUDES, params))

    async def generate_cart_redirect_urls(self, cart_id: Identifier) -> Any:
        """カートのリダイレクトURLを生成"""
        return await self.transport.post(cart_path(cart_id, "redirect_urls"), {})

    async def update_cart_customer_id(
        self,
        cart_id: Identifier,
        customer_id: int,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """
        カートの顧客IDを更新

        顧客に応じて価格・割引が再計算される。
        """
        return await self.transport.put(cart_path(cart_id), {"customer_id": customer_id}, params)

    async def create_cart(
        self, cart_id: Identifier, data: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.post(cart_path(cart_id), data, params)

    async def create_cart_with_redirect_urls(
        self, cart_id: Identifier, data: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """カートを作成し、レスポンスにリダイレクトURLを含める"""
        return await self.create_cart(cart_id, data, build_include_params(REDIRECT_URL_INCLUDES, params))

    async def add_line_items_to_cart(
        self, cart_id: Identifier, data: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.post(cart_path(cart_id, "items"), data, params)

    async def update_cart_line_item(
        self,
        cart_id: Identifier,
        item_id: Identifier,
        data: Any,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.put(cart_path(cart_id, "items", item_id), data, params)

    async def remove_line_item_from_cart(
        self,
        cart_id: Identifier,
        item_id: Identifier,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """
        カートから明細を削除

        最後の明細を削除するとカート自体が削除される（レスポンスはNone）。
        """
        return await self.transport.delete(cart_path(cart_id, "items", item_id), params)

    # ========================================
    # Checkouts
    # ========================================

    async def get_checkout(
        self, checkout_id: Identifier, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """チェックアウトを取得（例: params={"include": "consignments.available_shipping_options"}）"""
        return await self.transport.get(checkout_path(checkout_id), params)

    async def get_checkout_with_option_selections(
        self, checkout_id: Identifier, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """
        商品オプションの選択内容を含めてチェックアウトを取得

        チェックアウトリソースでは明細がcart配下にあるため、includeは
        cart. 付きのトークン（cart.line_items.physical_items.options,
        cart.line_items.digital_items.options）を送る。
        カート用の get_cart_with_option_selections とはトークンが異なる。
        """
        return await self.get_checkout(
            checkout_id, build_include_params(CHECKOUT_OPTION_SELECTION_INCLUDES, params)
        )

    async def get_checkout_with_shipping_options(
        self, checkout_id: Identifier, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """利用可能な配送オプションを含めてチェックアウトを取得"""
        return await self.get_checkout(checkout_id, build_include_params(SHIPPING_OPTION_INCLUDES, params))

    async def add_checkout_billing_address(
        self, checkout_id: Identifier, data: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.post(checkout_path(checkout_id, "billing-address"), data, params)

    async def update_checkout_billing_address(
        self,
        checkout_id: Identifier,
        address_id: Identifier,
        data: Any,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.put(
            checkout_path(checkout_id, "billing-address", address_id), data, params
        )

    async def add_consignments_to_checkout(
        self, checkout_id: Identifier, data: Any, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.post(checkout_path(checkout_id, "consignments"), data, params)

    async def update_checkout_consignment(
        self,
        checkout_id: Identifier,
        consignment_id: Identifier,
        data: Any,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.put(
            checkout_path(checkout_id, "consignments", consignment_id), data, params
        )

    async def delete_checkout_consignment(
        self,
        checkout_id: Identifier,
        consignment_id: Identifier,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.delete(checkout_path(checkout_id, "consignments", consignment_id), params)

    async def add_checkout_coupon(
        self,
        checkout_id: Identifier,
        coupon_code: str,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.post(
            checkout_path(checkout_id, "coupons"), {"coupon_code": coupon_code}, params
        )

    async def delete_checkout_coupon(
        self,
        checkout_id: Identifier,
        coupon_code: str,
        params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        return await self.transport.delete(checkout_path(checkout_id, "coupons", coupon_code), params)

    async def convert_checkout_to_order(
        self, checkout_id: Identifier, params: Optional[Mapping[str, Any]] = None
    ) -> Any:
        """チェックアウトを注文に変換（支払い可能な状態にする）"""
        return await self.transport.post(checkout_path(checkout_id, "orders"), {}, params)

    async def get_checkout_redirect_with_login(
        self,
        checkout_id: Identifier,
        url_kind: Union[UrlKind, str],
        login_options: Optional[Mapping[str, Any]] = None
    ) -> str:
        """
        カート/チェックアウトのリダイレクトURLを取得

        カートが顧客に紐付いている場合は、Customer Login APIのトークンで包んだURLを返す。

        Args:
            checkout_id: チェックアウトID
            url_kind: 'cart_url' / 'checkout_url' / 'embedded_checkout_url'
            login_options: トークン発行時の追加オプション（request_ip など）

        Returns:
            str: リダイレクトURL
        """
        token_issuer = self.token_issuer
        if token_issuer is None:
            token_issuer = CustomerLoginTokenIssuer()

        resolver = RedirectResolver(self, token_issuer)
        return await resolver.resolve(checkout_id, url_kind, login_options)
