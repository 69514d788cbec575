"""
bc_checkout/login_token.py

Customer Login API用JWTの発行

BigCommerce の Customer Login API は、アプリのクライアントシークレットで署名された
JWT を /login/token/{jwt} に渡すことで顧客をログインさせる。
トークンは単回使用で、ログイン後のリダイレクト先（redirect_to）を1つだけ保持する。
"""

import time
import uuid
from typing import Any, Dict, Mapping, Optional, Protocol

import jwt

from bc_checkout import config
from bc_checkout.errors import ConfigurationError
from bc_checkout.logger import get_logger, log_token_operation

logger = get_logger(__name__, service_name='login_token')


class TokenIssuer(Protocol):
    """ログイントークン発行者"""

    async def issue_login_token(
        self,
        customer_id: int,
        channel_id: Optional[int],
        options: Mapping[str, Any]
    ) -> str: ...


class CustomerLoginTokenIssuer:
    """Customer Login API JWTの発行者（HS256）"""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        store_hash: Optional[str] = None
    ):
        """
        Args:
            client_id: アプリのクライアントID（省略時は BIGCOMMERCE_CLIENT_ID）
            client_secret: アプリのクライアントシークレット（省略時は BIGCOMMERCE_CLIENT_SECRET）
            store_hash: ストアハッシュ（省略時は BIGCOMMERCE_STORE_HASH）
        """
        self.client_id = client_id or config.CLIENT_ID
        self.client_secret = client_secret or config.CLIENT_SECRET
        self.store_hash = store_hash or config.STORE_HASH
        self.algorithm = config.LOGIN_TOKEN_ALGORITHM

    def build_claims(
        self,
        customer_id: int,
        channel_id: Optional[int],
        options: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        JWTペイロードを組み立てる

        Args:
            customer_id: 顧客ID
            channel_id: チャネルID（Noneの場合は省略）
            options: redirect_target（ログイン後のパス+クエリ）、request_ip、iat

        Returns:
            Dict[str, Any]: JWTクレーム
        """
        options = options or {}
        claims: Dict[str, Any] = {
            "iss": self.client_id,
            "iat": int(options.get("iat") or time.time()),
            "jti": str(uuid.uuid4()),
            "operation": config.LOGIN_TOKEN_OPERATION,
            "store_hash": self.store_hash,
            "customer_id": customer_id,
        }
        if channel_id is not None:
            claims["channel_id"] = channel_id
        if options.get("redirect_target"):
            claims["redirect_to"] = options["redirect_target"]
        if options.get("request_ip"):
            claims["request_ip"] = options["request_ip"]
        return claims

    async def issue_login_token(
        self,
        customer_id: int,
        channel_id: Optional[int],
        options: Mapping[str, Any]
    ) -> str:
        """
        ログイントークンを発行

        Args:
            customer_id: 顧客ID
            channel_id: チャネルID
            options: build_claims を参照

        Returns:
            str: 署名済みJWT

        Raises:
            ConfigurationError: クライアントID/シークレット/ストアハッシュが未設定
        """
        if not (self.client_id and self.client_secret and self.store_hash):
            log_token_operation(logger, "issue", self.algorithm, customer_id, success=False)
            raise ConfigurationError(
                "Customer login requires BIGCOMMERCE_CLIENT_ID, BIGCOMMERCE_CLIENT_SECRET "
                "and BIGCOMMERCE_STORE_HASH"
            )

        claims = self.build_claims(customer_id, channel_id, options)
        token = jwt.encode(claims, self.client_secret, algorithm=self.algorithm)

        log_token_operation(logger, "issue", self.algorithm, customer_id)
        logger.debug(
            f"[CustomerLoginTokenIssuer] Issued token: jti={claims['jti']}, "
            f"channel_id={channel_id}, redirect_to={claims.get('redirect_to')}"
        )
        return token

    def decode_login_token(self, token: str) -> Dict[str, Any]:
        """
        ログイントークンを検証してクレームを取得

        Args:
            token: 発行済みJWT

        Returns:
            Dict[str, Any]: クレーム

        Raises:
            jwt.InvalidTokenError: 署名不正またはトークン形式不正
        """
        try:
            claims = jwt.decode(
                token,
                self.client_secret,
                algorithms=[self.algorithm],
                options={"require": ["iss", "iat", "jti", "operation"]}
            )
        except jwt.InvalidTokenError as e:
            logger.error(f"[CustomerLoginTokenIssuer] Invalid login token: {e}")
            log_token_operation(logger, "decode", self.algorithm, success=False)
            raise

        log_token_operation(logger, "decode", self.algorithm, claims.get("customer_id"))
        return claims
