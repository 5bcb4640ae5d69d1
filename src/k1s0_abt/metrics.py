"""OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0_abt", version="0.1.0")

resolutions_total = _meter.create_counter(
    name="abt_resolutions_total",
    description="Total number of assignment resolutions by outcome",
    unit="1",
)

fetch_attempts_total = _meter.create_counter(
    name="abt_fetch_attempts_total",
    description="Total number of outbound requests to the experiment service",
    unit="1",
)

fetch_failures_total = _meter.create_counter(
    name="abt_fetch_failures_total",
    description="Total number of failed assignment fetches by error code",
    unit="1",
)
