"""
bc_checkout/errors.py

Checkout/Cartクライアントの例外定義
"""

from typing import Any, Iterable, Optional


class CheckoutClientError(Exception):
    """bc_checkout の全例外の基底クラス"""


class InvalidArgument(CheckoutClientError, ValueError):
    """呼び出し側の引数が不正（ネットワーク通信前に検出）"""

    def __init__(self, value: Any, valid_values: Iterable[str]):
        self.value = value
        self.valid_values = tuple(valid_values)
        choices = ", ".join(f"'{v}'" for v in self.valid_values)
        super().__init__(f"Invalid url kind {value!r}. Must be one of: {choices}")


class MissingRedirectUrl(CheckoutClientError, LookupError):
    """要求した種類のリダイレクトURLがカートに存在しない（または絶対URLでない）"""

    def __init__(self, checkout_id: str, url_kind: str, url: Optional[str] = None):
        self.checkout_id = checkout_id
        self.url_kind = url_kind
        self.url = url
        if url is None:
            message = f"Redirect URL '{url_kind}' is not available for checkout {checkout_id}"
        else:
            message = (
                f"Redirect URL '{url_kind}' for checkout {checkout_id} "
                f"is not an absolute URL: {url!r}"
            )
        super().__init__(message)


class TransportError(CheckoutClientError):
    """HTTP通信エラー（ステータスコードとメッセージを保持）"""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        method: Optional[str] = None,
        path: Optional[str] = None
    ):
        self.status_code = status_code
        self.message = message
        self.method = method
        self.path = path

        status = status_code if status_code is not None else "network"
        target = f" {method} {path}" if method and path else ""
        super().__init__(f"[{status}]{target}: {message}")


class ConfigurationError(CheckoutClientError):
    """必要な認証情報・設定が不足している"""
