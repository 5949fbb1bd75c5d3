"""
Constants and configuration for Fleet Pulse.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict, Optional

from pydantic_settings import BaseSettings


REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
THRESHOLDS_TTL: int = int(os.getenv("THRESHOLDS_TTL", "0"))

FLEETPULSE_DATABASE_URL = os.getenv("FLEETPULSE_DATABASE_URL", "sqlite:///./fleetpulse.db")
FLEETPULSE_ENRICHMENT_URL = os.getenv("FLEETPULSE_ENRICHMENT_URL", "").rstrip("/")
FLEETPULSE_ENRICHMENT_TIMEOUT = float(os.getenv("FLEETPULSE_ENRICHMENT_TIMEOUT", "10"))
FLEETPULSE_STORE_TIMEOUT_SECONDS = float(os.getenv("FLEETPULSE_STORE_TIMEOUT_SECONDS", "5"))
FLEETPULSE_DETECTION_INTERVAL_SECONDS = float(os.getenv("FLEETPULSE_DETECTION_INTERVAL_SECONDS", "30"))

# fingerprint of aggregate issues that are not tied to a single target
AGGREGATE_TARGET = "*"

# weight values assigned to severity labels for comparison and ranking
SEVERITY_WEIGHTS: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 4,
    "critical": 8,
}

# process-wide threshold defaults, overridable at runtime through the API
DEFAULT_THRESHOLDS: Dict[str, float] = {
    "response_time_seconds": 5.0,
    "success_rate_pct": 80.0,
    "error_rate_pct": 10.0,
    "handoff_time_seconds": 3.0,
}

HEALTH_PATH = "/health"


class Settings(BaseSettings):
    database_url: str = FLEETPULSE_DATABASE_URL

    enrichment_url: Optional[str] = FLEETPULSE_ENRICHMENT_URL or None
    enrichment_timeout: float = FLEETPULSE_ENRICHMENT_TIMEOUT
    enrichment_api_key: Optional[str] = os.getenv("FLEETPULSE_ENRICHMENT_API_KEY") or None

    store_timeout_seconds: float = FLEETPULSE_STORE_TIMEOUT_SECONDS
    db_lock_timeout_seconds: float = 3.0
    store_redis_retry_cooldown_seconds: float = 10.0
    store_redis_op_timeout_seconds: float = 0.5
    store_fallback_max_items: int = 10_000

    # scheduler
    detection_interval_seconds: float = FLEETPULSE_DETECTION_INTERVAL_SECONDS
    detection_enabled: bool = True
    max_parallel_submits: int = 8

    # sample and execution buffers
    sample_retention: int = 500
    execution_retention: int = 500

    # recent/baseline partitioning
    recent_window: int = 20
    baseline_window: int = 80
    min_samples: int = 10

    # anomaly detection
    error_spike_ratio: float = 2.0
    error_spike_min_rate: float = 0.10
    latency_degradation_ratio: float = 1.5
    latency_degradation_min_ms: float = 3000.0

    # bottleneck classification
    error_rate_snapshot_size: int = 500
    error_rate_window_seconds: float = 3600.0
    execution_snapshot_size: int = 100
    failure_burst_window_seconds: float = 600.0
    failure_burst_min_failures: int = 3
    slow_workflow_seconds: float = 300.0
    overload_window_seconds: float = 3600.0
    overload_max_samples: int = 50
    workflow_failure_fraction: float = 0.15
    latency_outlier_factor: float = 3.0
    latency_outlier_fraction: float = 0.20
    latency_snapshot_size: int = 100
    stuck_execution_seconds: float = 1800.0
    success_rate_min_samples: int = 10

    # trend prediction
    trend_window: int = 10
    trend_failure_ratio: float = 1.5
    trend_min_failures: int = 2
    trend_probability_base: float = 30.0
    trend_probability_ratio_weight: float = 10.0
    trend_probability_ratio_cap: float = 3.0
    trend_probability_count_weight: float = 5.0
    trend_probability_max: float = 99.0
    trend_horizon_hours: float = 24.0
    trend_min_timeframe_hours: float = 1.0
    prediction_forward_probability: float = 60.0
    prediction_high_probability: float = 80.0

    # alert listing
    alerts_list_limit: int = 50
    alerts_list_max: int = 500

    model_config = {
        "env_prefix": "FLEETPULSE_",
        "extra": "ignore",
    }


settings = Settings()
