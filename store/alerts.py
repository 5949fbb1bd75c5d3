"""
SQL persistence for alerts. Every function runs one transaction, so a write is either fully committed or absent; callers run these in a worker thread.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db_session
from db_models import AlertRecord
from engine.alerts.models import Alert, AlertFilter
from engine.enums import AlertStatus, IssueKind, Severity, TargetType
from engine.errors import AlertNotFound, InvalidTransition, PersistenceError

log = logging.getLogger(__name__)

_LIVE = [s.value for s in AlertStatus.live()]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_alert(row: AlertRecord) -> Alert:
    return Alert(
        id=row.id,
        fingerprint=row.fingerprint,
        alert_type=IssueKind(row.alert_type),
        severity=Severity(row.severity),
        target_type=TargetType(row.target_type),
        target_name=row.target_name,
        title=row.title,
        message=row.message,
        status=AlertStatus(row.status),
        created_at=_as_utc(row.created_at),
        current_value=row.current_value,
        baseline_value=row.baseline_value,
        deviation_percentage=row.deviation_percentage,
        affected=list(row.affected or []),
        probability=row.probability,
        timeframe_hours=row.timeframe_hours,
        analysis=row.analysis,
        recommended_actions=list(row.recommended_actions or []),
        acknowledged_at=_as_utc(row.acknowledged_at),
        resolved_at=_as_utc(row.resolved_at),
        resolved_by=row.resolved_by,
    )


def _to_record(alert: Alert) -> AlertRecord:
    return AlertRecord(
        id=alert.id,
        fingerprint=alert.fingerprint,
        alert_type=alert.alert_type.value,
        severity=alert.severity.value,
        target_type=alert.target_type.value,
        target_name=alert.target_name,
        title=alert.title,
        message=alert.message,
        status=alert.status.value,
        created_at=alert.created_at,
        current_value=alert.current_value,
        baseline_value=alert.baseline_value,
        deviation_percentage=alert.deviation_percentage,
        affected=list(alert.affected),
        probability=alert.probability,
        timeframe_hours=alert.timeframe_hours,
        analysis=alert.analysis,
        recommended_actions=list(alert.recommended_actions),
    )


@contextmanager
def _session() -> Iterator[Session]:
    try:
        with get_db_session() as db:
            yield db
    except SQLAlchemyError as exc:
        raise PersistenceError(f"alert store error: {exc}") from exc
    except RuntimeError as exc:
        raise PersistenceError(str(exc)) from exc


def _live_row(db: Session, fingerprint: str) -> Optional[AlertRecord]:
    return db.scalars(
        select(AlertRecord)
        .where(AlertRecord.fingerprint == fingerprint, AlertRecord.status.in_(_LIVE))
        .limit(1)
    ).first()


def create_if_absent_live(alert: Alert) -> Optional[Alert]:
    """Insert ``alert`` unless its fingerprint already has a live alert; returns None on a duplicate."""
    with _session() as db:
        if _live_row(db, alert.fingerprint) is not None:
            return None
        row = _to_record(alert)
        db.add(row)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            log.debug("Live alert for %s inserted concurrently", alert.fingerprint[:12])
            return None
        return _to_alert(row)


def get(alert_id: str) -> Optional[Alert]:
    with _session() as db:
        row = db.get(AlertRecord, alert_id)
        return _to_alert(row) if row is not None else None


def find_live(fingerprint: str) -> Optional[Alert]:
    with _session() as db:
        row = _live_row(db, fingerprint)
        return _to_alert(row) if row is not None else None


def update(alert_id: str, mutate: Callable[[Alert], Dict[str, Any]]) -> Alert:
    """Apply the field changes returned by ``mutate`` as a compare-and-set on status.

    ``mutate`` sees the current state and may raise to abort; nothing is
    written in that case. The UPDATE only matches while the row still has the
    status ``mutate`` saw, so of two racing transitions exactly one lands and
    the other raises InvalidTransition.
    """
    with _session() as db:
        row = db.get(AlertRecord, alert_id)
        if row is None:
            raise AlertNotFound(f"alert {alert_id} not found")
        seen = row.status
        changes = {
            name: value.value if isinstance(value, (AlertStatus, Severity)) else value
            for name, value in mutate(_to_alert(row)).items()
        }
        result = db.execute(
            sa_update(AlertRecord)
            .where(AlertRecord.id == alert_id, AlertRecord.status == seen)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidTransition(f"alert {alert_id} changed from {seen} concurrently")
        db.refresh(row)
        return _to_alert(row)


def attach_enrichment(alert_id: str, analysis: Optional[str], actions: List[str]) -> bool:
    with _session() as db:
        row = db.get(AlertRecord, alert_id)
        if row is None:
            return False
        row.analysis = analysis
        row.recommended_actions = list(actions)
        return True


def query(flt: AlertFilter) -> List[Alert]:
    stmt = select(AlertRecord)
    if flt.status is not None:
        stmt = stmt.where(AlertRecord.status == flt.status.value)
    if flt.severity is not None:
        stmt = stmt.where(AlertRecord.severity == flt.severity.value)
    if flt.target_type is not None:
        stmt = stmt.where(AlertRecord.target_type == flt.target_type.value)
    if flt.target_name:
        stmt = stmt.where(AlertRecord.target_name == flt.target_name)
    if flt.alert_type is not None:
        stmt = stmt.where(AlertRecord.alert_type == flt.alert_type.value)
    stmt = stmt.order_by(AlertRecord.created_at.desc(), AlertRecord.id).limit(max(1, int(flt.limit)))
    with _session() as db:
        return [_to_alert(row) for row in db.scalars(stmt).all()]
