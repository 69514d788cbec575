"""
bc_checkout/telemetry.py

OpenTelemetry分散トレーシング設定モジュール

BigCommerce APIへのHTTP通信をクライアントスパンとして記録する。
OTEL_ENABLED が無効の場合、スパンはNoOpトレーサー上で作成される。
"""

import os
from contextlib import contextmanager
from typing import Any, Optional, Set

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

from bc_checkout.logger import get_logger

logger = get_logger(__name__, service_name='telemetry')

# 機密情報キー（マスク対象）
SENSITIVE_KEYS: Set[str] = {
    "secret", "token", "api_key", "access_token", "client_secret",
    "authorization", "x-auth-token", "jwt"
}


def is_telemetry_enabled() -> bool:
    """
    OpenTelemetryが有効かどうかを環境変数から判定

    Returns:
        bool: OTEL_ENABLEDがtrue/1/yesの場合はTrue
    """
    otel_enabled = os.getenv("OTEL_ENABLED", "false").lower()
    return otel_enabled in ("true", "1", "yes")


def setup_telemetry(service_name: Optional[str] = None) -> Optional[TracerProvider]:
    """
    OpenTelemetry分散トレーシングのセットアップ

    環境変数:
        OTEL_ENABLED: トレーシング有効/無効（デフォルト: false）
        OTEL_SERVICE_NAME: サービス名（デフォルト: bc_checkout）
        OTEL_EXPORTER_OTLP_ENDPOINT: OTLPエンドポイント（デフォルト: http://localhost:4317）
        OTEL_EXPORTER_OTLP_INSECURE: 非セキュア接続（デフォルト: true）

    Args:
        service_name: サービス名（指定しない場合は環境変数から取得）

    Returns:
        Optional[TracerProvider]: トレーサープロバイダー（無効時はNone）
    """
    if not is_telemetry_enabled():
        logger.info("[Telemetry] OpenTelemetry is disabled (OTEL_ENABLED=false)")
        return None

    existing_provider = trace.get_tracer_provider()
    if isinstance(existing_provider, TracerProvider):
        logger.info("[Telemetry] TracerProvider already configured, reusing it")
        return existing_provider

    if service_name is None:
        service_name = os.getenv("OTEL_SERVICE_NAME", "bc_checkout")

    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    otlp_insecure = os.getenv("OTEL_EXPORTER_OTLP_INSECURE", "true").lower() in ("true", "1", "yes")

    logger.info(
        f"[Telemetry] Initializing OpenTelemetry:\n"
        f"  Service Name: {service_name}\n"
        f"  OTLP Endpoint: {otlp_endpoint}\n"
        f"  Insecure: {otlp_insecure}"
    )

    provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=otlp_insecure))
    )
    trace.set_tracer_provider(provider)

    logger.info(f"[Telemetry] OpenTelemetry initialized successfully for service: {service_name}")
    return provider


def mask_sensitive_data(data: Any, max_depth: int = 10) -> Any:
    """
    機密情報をマスクする（再帰的）

    Args:
        data: マスク対象のデータ（dict, list, その他）
        max_depth: 再帰の最大深度

    Returns:
        マスクされたデータ
    """
    if max_depth <= 0:
        return "[MAX_DEPTH_REACHED]"

    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if any(sensitive in key_lower for sensitive in SENSITIVE_KEYS):
                masked[key] = "[REDACTED]"
            else:
                masked[key] = mask_sensitive_data(value, max_depth - 1)
        return masked
    elif isinstance(data, list):
        return [mask_sensitive_data(item, max_depth - 1) for item in data]
    else:
        return data


def create_http_span(tracer: trace.Tracer, method: str, url: str, **attributes):
    """
    HTTP通信用のスパンを作成するヘルパー関数

    Args:
        tracer: OpenTelemetryトレーサー
        method: HTTPメソッド (GET, POST, etc.)
        url: リクエストURL
        **attributes: 追加のスパン属性（Noneの値は設定しない）

    Returns:
        context manager: スパンのコンテキストマネージャー

    Usage:
        tracer = get_tracer(__name__)
        with create_http_span(tracer, "GET", url, **{"bc.resource": "cart"}) as span:
            response = await client.get(url)
            span.set_attribute("http.status_code", response.status_code)
    """
    @contextmanager
    def http_span_context():
        with tracer.start_as_current_span(
            f"HTTP {method}",
            kind=trace.SpanKind.CLIENT
        ) as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.url", url)

            for key, value in attributes.items():
                if value is not None:
                    span.set_attribute(key, value)

            yield span

    return http_span_context()


def get_tracer(name: str) -> trace.Tracer:
    """
    トレーサーを取得

    Args:
        name: トレーサー名（通常はモジュール名）

    Returns:
        trace.Tracer: トレーサーインスタンス
    """
    return trace.get_tracer(name)
