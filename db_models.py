"""
SQLAlchemy models for the alert store.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import uuid
from datetime import datetime
from sqlalchemy import JSON, DateTime, Float, Index, String, Text, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

_LIVE_STATUSES = text("status IN ('active', 'acknowledged')")


class Base(DeclarativeBase):
    pass


class AlertRecord(Base):
    __tablename__ = "monitoring_alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    alert_type: Mapped[str] = mapped_column(String(48), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    target_type: Mapped[str] = mapped_column(String(16), nullable=False)
    target_name: Mapped[str] = mapped_column(String(256), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    current_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    baseline_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    deviation_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    affected: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    timeframe_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommended_actions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(256), nullable=True)

    __table_args__ = (
        # at most one live alert per fingerprint; a racing insert fails with IntegrityError
        Index(
            "ux_monitoring_alerts_live_fingerprint",
            "fingerprint",
            unique=True,
            sqlite_where=_LIVE_STATUSES,
            postgresql_where=_LIVE_STATUSES,
        ),
        Index("ix_monitoring_alerts_fingerprint_status", "fingerprint", "status"),
        Index("ix_monitoring_alerts_status_created", "status", "created_at"),
        Index("ix_monitoring_alerts_severity_created", "severity", "created_at"),
        Index("ix_monitoring_alerts_target", "target_type", "target_name"),
    )
