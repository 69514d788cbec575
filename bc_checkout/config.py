"""
bc_checkout/config.py

BigCommerce API接続設定（環境変数から取得）

プロセス起動時に一度だけ読み込まれる定数群。
各クライアントのコンストラクタ引数で上書き可能。
"""

import os

# ========================================
# API接続設定
# ========================================

API_URL = os.getenv("BIGCOMMERCE_API_URL", "https://api.bigcommerce.com").rstrip("/")
STORE_HASH = os.getenv("BIGCOMMERCE_STORE_HASH", "")
ACCESS_TOKEN = os.getenv("BIGCOMMERCE_ACCESS_TOKEN", "")
HTTP_TIMEOUT = float(os.getenv("BIGCOMMERCE_HTTP_TIMEOUT", "30.0"))

# ========================================
# Customer Login API（ログインJWT）設定
# ========================================

CLIENT_ID = os.getenv("BIGCOMMERCE_CLIENT_ID", "")
CLIENT_SECRET = os.getenv("BIGCOMMERCE_CLIENT_SECRET", "")
LOGIN_TOKEN_ALGORITHM = "HS256"
LOGIN_TOKEN_OPERATION = "customer_login"
LOGIN_TOKEN_PATH = "/login/token/"

# ========================================
# リソースパス
# ========================================

BASE_CART_PATH = "/v3/carts"
BASE_CHECKOUT_PATH = "/v3/checkouts"
