"""
bc_checkout/models.py

カート/チェックアウトAPIのPydanticモデル
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UrlKind(str, Enum):
    """解決対象のリダイレクトURL種別"""

    CART_URL = "cart_url"
    CHECKOUT_URL = "checkout_url"
    EMBEDDED_CHECKOUT_URL = "embedded_checkout_url"

    @classmethod
    def values(cls) -> tuple:
        return tuple(kind.value for kind in cls)


class CartSnapshot(BaseModel):
    """
    redirect_urls を含めて取得したカートのスナップショット

    リダイレクト解決に必要なフィールドのみを型付けし、
    それ以外のフィールドはそのまま保持する。
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    redirect_urls: Dict[str, str] = Field(default_factory=dict)
    channel_id: Optional[int] = None
    customer_id: int = 0

    @field_validator("redirect_urls", mode="before")
    @classmethod
    def _redirect_urls_default(cls, value: Any) -> Any:
        return value or {}

    @field_validator("customer_id", mode="before")
    @classmethod
    def _customer_id_default(cls, value: Any) -> Any:
        # null/未設定はゲストカート
        return 0 if value is None else value

    @classmethod
    def from_response(cls, response: Any) -> "CartSnapshot":
        """v3 APIレスポンス（{"data": {...}} 形式）からスナップショットを生成"""
        if isinstance(response, dict) and isinstance(response.get("data"), dict):
            response = response["data"]
        return cls.model_validate(response or {})

    @property
    def is_guest(self) -> bool:
        return self.customer_id <= 0
