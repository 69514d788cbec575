"""
bc_checkout/logger.py

共通ロギング設定モジュール

環境変数でログレベルを制御可能な統一ロガーを提供します。
HTTPリクエスト/レスポンスのペイロードはDEBUGレベルで出力されます。
"""

import logging
import os
import sys
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone


class SensitiveDataFilter(logging.Filter):
    """機密データをマスクするフィルター"""

    SENSITIVE_KEYS = {
        'password', 'secret', 'client_secret', 'api_key', 'token',
        'access_token', 'x-auth-token', 'authorization', 'cookie', 'jwt'
    }

    MASK = '***MASKED***'

    def filter(self, record: logging.LogRecord) -> bool:
        """ログレコードから機密データをマスク"""
        if hasattr(record, 'msg') and isinstance(record.msg, str):
            # 既にマスク済みの場合はそのまま
            if self.MASK in record.msg:
                return True

            # 純粋なJSONペイロードまたは "LABEL: {...}" 形式をパースしてマスク
            prefix, payload = '', record.msg
            if not payload.lstrip().startswith('{'):
                head, sep, tail = record.msg.partition(': ')
                if sep and tail.lstrip().startswith('{'):
                    prefix, payload = head, tail

            try:
                if payload.lstrip().startswith('{'):
                    data = json.loads(payload)
                    masked = json.dumps(self._mask_sensitive_data(data), ensure_ascii=False)
                    record.msg = f"{prefix}: {masked}" if prefix else masked
            except (json.JSONDecodeError, AttributeError):
                pass

        return True

    def _mask_sensitive_data(self, data: Any) -> Any:
        """再帰的に機密データをマスク"""
        if isinstance(data, dict):
            return {
                key: self.MASK if str(key).lower() in self.SENSITIVE_KEYS
                else self._mask_sensitive_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [self._mask_sensitive_data(item) for item in data]
        else:
            return data


class StructuredFormatter(logging.Formatter):
    """構造化ログフォーマッター（JSON出力対応）"""

    def __init__(self, json_format: bool = False):
        super().__init__()
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        """ログレコードをフォーマット"""
        now = datetime.now(timezone.utc)

        if self.json_format:
            log_data = {
                'timestamp': now.strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
                'level': record.levelname,
                'logger': record.name,
                'message': record.getMessage(),
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
            }

            if hasattr(record, 'service_name'):
                log_data['service'] = record.service_name
            if hasattr(record, 'checkout_id'):
                log_data['checkout_id'] = record.checkout_id

            # 例外情報
            if record.exc_info:
                log_data['exception'] = self.formatException(record.exc_info)

            return json.dumps(log_data, ensure_ascii=False)
        else:
            # 人間が読みやすいフォーマット
            timestamp = now.strftime('%Y-%m-%d %H:%M:%S')
            message = (
                f"[{timestamp}] {record.levelname:8s} "
                f"{record.name:30s} | {record.getMessage()}"
            )
            if record.exc_info:
                message += "\n" + self.formatException(record.exc_info)
            return message


def setup_logger(
    name: str,
    level: Optional[str] = None,
    json_format: bool = False,
    service_name: Optional[str] = None
) -> logging.Logger:
    """
    統一ロガーをセットアップ

    Args:
        name: ロガー名（通常は __name__ を渡す）
        level: ログレベル（指定なしの場合は環境変数 LOG_LEVEL を使用）
        json_format: JSON形式で出力するか（デフォルト: False）
        service_name: サービス名（ログに含める）

    Returns:
        設定済みのロガー

    環境変数:
        LOG_LEVEL: ログレベル（DEBUG/INFO/WARNING/ERROR/CRITICAL、デフォルト: INFO）
        LOG_FORMAT: ログフォーマット（json/text、デフォルト: text）
    """
    logger = logging.getLogger(name)

    # 既にハンドラーが設定されている場合はそのまま返す
    if logger.handlers:
        return logger

    if level is None:
        level = os.getenv('LOG_LEVEL', 'INFO')

    log_level = getattr(logging, level.upper(), None)
    if not isinstance(log_level, int):
        log_level = logging.INFO
        logger.warning(f"Invalid log level '{level}', using INFO")

    logger.setLevel(log_level)

    if json_format or os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        formatter = StructuredFormatter(json_format=True)
    else:
        formatter = StructuredFormatter(json_format=False)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SensitiveDataFilter())

    logger.addHandler(console_handler)

    if service_name:
        logger.service_name = service_name

    # 親ロガーへの伝播を防止（重複を避ける）
    logger.propagate = False

    return logger


def get_logger(name: str, service_name: Optional[str] = None) -> logging.Logger:
    """
    ロガーを取得するヘルパー関数

    Args:
        name: ロガー名（通常は __name__）
        service_name: サービス名

    Returns:
        設定済みロガー
    """
    return setup_logger(name, service_name=service_name)


def log_http_request(
    logger: logging.Logger,
    method: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    body: Optional[Any] = None
):
    """
    HTTPリクエストをログ出力（詳細はDEBUGレベル）

    Args:
        logger: ロガーインスタンス
        method: HTTPメソッド
        url: リクエストURL
        headers: リクエストヘッダー
        params: クエリパラメータ
        body: リクエストボディ
    """
    logger.info(f"HTTP Request: {method} {url}")

    if logger.isEnabledFor(logging.DEBUG):
        request_data = {
            "type": "HTTP_REQUEST",
            "method": method,
            "url": url,
            "headers": headers or {},
            "params": params or {},
            "body": body
        }
        logger.debug(f"HTTP_REQUEST_RAW: {json.dumps(request_data, ensure_ascii=False, default=str)}")


def log_http_response(
    logger: logging.Logger,
    status_code: int,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[Any] = None,
    duration_ms: Optional[float] = None
):
    """
    HTTPレスポンスをログ出力（詳細はDEBUGレベル）

    Args:
        logger: ロガーインスタンス
        status_code: HTTPステータスコード
        headers: レスポンスヘッダー
        body: レスポンスボディ
        duration_ms: リクエスト処理時間（ミリ秒）
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(f"HTTP Response: {status_code}{duration_str}")

    if logger.isEnabledFor(logging.DEBUG):
        response_data = {
            "type": "HTTP_RESPONSE",
            "status_code": status_code,
            "headers": headers or {},
            "body": body,
            "duration_ms": duration_ms
        }
        logger.debug(f"HTTP_RESPONSE_RAW: {json.dumps(response_data, ensure_ascii=False, default=str)}")


def log_token_operation(
    logger: logging.Logger,
    operation: str,
    algorithm: str,
    customer_id: Optional[int] = None,
    success: bool = True
):
    """
    トークン署名・検証操作をログ出力（INFOレベル）

    Args:
        logger: ロガーインスタンス
        operation: 操作名（"issue", "decode"）
        algorithm: アルゴリズム名
        customer_id: 対象顧客ID
        success: 成功/失敗
    """
    status = "SUCCESS" if success else "FAILED"
    customer_str = f" (customer: {customer_id})" if customer_id is not None else ""
    logger.info(f"Token {operation.upper()}: {algorithm}{customer_str} - {status}")
