"""Aging sweep that raises one alert per overdue GRNI accrual."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import Clock, SystemClock, days_between
from app.core.company import CompanyContext
from app.db.models import (
    SYSTEM_USER_ID,
    AlertLevel,
    AuditAction,
    GRNIAccrual,
    GRNIAlertConfig,
    NotificationOutbox,
    NotificationPriority,
)
from app.repositories.accrual import AccrualRepository
from app.repositories.alert_config import AlertConfigRepository
from app.repositories.notification import NotificationRepository
from app.repositories.supplier import SupplierRepository
from app.schemas.grni import AlertSweepResult
from app.utils.money import money

from .audit_trail import AuditTrail, jsonable
from .side_effects import BestEffort


logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "GRNI_AGING_ALERT"
NOTIFICATION_ENTITY = "GRNI_ACCRUAL"

PRIORITY_BY_LEVEL = {
    AlertLevel.AMARILLA: NotificationPriority.NORMAL,
    AlertLevel.ROJA: NotificationPriority.ALTA,
    AlertLevel.CRITICA: NotificationPriority.URGENTE,
}


@dataclass(slots=True, frozen=True)
class AlertClassification:
    level: AlertLevel
    priority: NotificationPriority


def classify_age(days: int, config: GRNIAlertConfig) -> AlertClassification | None:
    """Highest threshold reached by ``days``, checked critical first."""

    if days >= config.critical_days:
        level = AlertLevel.CRITICA
    elif days >= config.red_days:
        level = AlertLevel.ROJA
    elif days >= config.yellow_days:
        level = AlertLevel.AMARILLA
    else:
        return None
    return AlertClassification(level=level, priority=PRIORITY_BY_LEVEL[level])


class AgingAlertService:
    """Run the periodic aging sweep for one company.

    An accrual is alerted at most once in its lifetime: ``alert_sent`` is
    flipped with a conditional update in the same transaction as the outbox
    write, so overlapping sweeps cannot both fire for the same row.
    """

    def __init__(self, session: Session, company: CompanyContext, clock: Clock | None = None) -> None:
        self.session = session
        self.company = company
        self.clock = clock or SystemClock()
        self.accruals = AccrualRepository(session)
        self.configs = AlertConfigRepository(session)
        self.notifications = NotificationRepository(session)
        self.suppliers = SupplierRepository(session)
        self.best_effort = BestEffort(session)
        self.audit = AuditTrail(session, company, clock=self.clock, best_effort=self.best_effort)

    def run_sweep(self) -> AlertSweepResult:
        config = self.configs.get_active(self.company)
        if config is None:
            logger.info("GRNI sweep skipped: company %s has no active alert config", self.company.company_id)
            return AlertSweepResult()

        now = self.clock.now()
        candidates = self.accruals.list_pending_unalerted(self.company)
        supplier_names = self.suppliers.names_for(self.company, (accrual.supplier_id for accrual in candidates))
        result = AlertSweepResult()

        for accrual in candidates:
            days = days_between(accrual.created_at, now)
            classification = classify_age(days, config)
            if classification is None:
                continue

            snapshot = _AccrualSnapshot.of(accrual, supplier_names.get(accrual.supplier_id))
            try:
                with self.session.begin_nested():
                    claimed = self.accruals.mark_alerted(
                        accrual,
                        {"alert_sent_at": now, "alert_days": days, "alert_level": classification.level},
                    )
            except SQLAlchemyError:
                logger.exception("GRNI could not mark accrual %s as alerted", snapshot.id)
                continue
            if not claimed:
                continue
            result.alerts_sent += 1

            if snapshot.owner_id is not None:
                outcome = self.best_effort.run(
                    f"notification for accrual {snapshot.id}",
                    lambda: self.notifications.add(self._build_notification(snapshot, classification, days)),
                )
                if outcome.succeeded:
                    result.notifications_created += 1

            self.audit.record(
                snapshot.id,
                AuditAction.SEND_ALERT,
                SYSTEM_USER_ID,
                reason_code=f"ALERT_{classification.level.value}",
                reason_text=f"Alerta de antigüedad {classification.level.value} - {days} días",
                details={"level": classification.level, "days": days, "owner_id": snapshot.owner_id},
            )

        self.session.commit()
        logger.info(
            "GRNI sweep for company %s: %s alerts, %s notifications",
            self.company.company_id,
            result.alerts_sent,
            result.notifications_created,
        )
        return result

    def _build_notification(
        self, snapshot: "_AccrualSnapshot", classification: AlertClassification, days: int
    ) -> NotificationOutbox:
        level = classification.level.value
        receipt_label = snapshot.goods_receipt_number or snapshot.goods_receipt_id
        return NotificationOutbox(
            company_id=self.company.company_id,
            type=NOTIFICATION_TYPE,
            priority=classification.priority,
            entity_type=NOTIFICATION_ENTITY,
            entity_id=snapshot.id,
            recipient_user_id=snapshot.owner_id,
            subject=f"GRNI {level}: {snapshot.supplier_name or 'Proveedor'} - {days} días",
            body=(
                f"El accrual GRNI de la recepción {receipt_label} tiene {days} días de antigüedad. "
                f"Monto: ${snapshot.estimated_amount:.2f}"
            ),
            details=jsonable(
                {
                    "level": classification.level,
                    "days": days,
                    "estimated_amount": snapshot.estimated_amount,
                    "supplier_id": snapshot.supplier_id,
                    "goods_receipt_id": snapshot.goods_receipt_id,
                }
            ),
            created_at=self.clock.now(),
        )


@dataclass(slots=True, frozen=True)
class _AccrualSnapshot:
    """Values read before ``mark_alerted`` expires the ORM instance."""

    id: str
    owner_id: int | None
    supplier_id: str
    supplier_name: str | None
    goods_receipt_id: str
    goods_receipt_number: str | None
    estimated_amount: object

    @classmethod
    def of(cls, accrual: GRNIAccrual, supplier_name: str | None) -> "_AccrualSnapshot":
        return cls(
            id=accrual.id,
            owner_id=accrual.owner_id,
            supplier_id=accrual.supplier_id,
            supplier_name=supplier_name,
            goods_receipt_id=accrual.goods_receipt_id,
            goods_receipt_number=accrual.goods_receipt_number,
            estimated_amount=money(accrual.estimated_amount),
        )
