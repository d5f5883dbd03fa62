"""GRNI accrual ledger: creation, reversal, void and follow-up of accruals.

An accrual is opened for every priceable line of a confirmed goods receipt and
closed either by linking the supplier invoice (FACTURADO) or by voiding the
receipt (ANULADO). Both closing states are terminal. Audit entries are
best-effort; the accrual row itself is the financial record.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import Clock, SystemClock, period_of
from app.core.company import CompanyContext
from app.core.settings import get_settings
from app.db.models import AccrualStatus, AuditAction, GRNIAccrual
from app.repositories.accrual import AccrualRepository
from app.repositories.directory import DirectoryRepository
from app.schemas.grni import (
    AccrualCreationResult,
    AccrualRead,
    GoodsReceiptIn,
    GoodsReceiptItemIn,
    InvoiceIn,
    InvoiceItemIn,
    NoteResult,
    ReversalResult,
    VoidResult,
)
from app.utils.money import ZERO, line_amount, money, to_decimal

from .audit_trail import AuditTrail
from .exceptions import AccrualWriteError, ConflictError, NotFoundError, ValidationError
from .owner_assignment import OwnerAssignment, OwnerResolver, OwnerSelector
from .side_effects import BestEffort


logger = logging.getLogger(__name__)

REASON_INVOICE_LINKED = "INVOICE_LINKED"
REASON_RECEIPT_VOIDED = "RECEIPT_VOIDED"
REASON_OWNER_REASSIGNED = "OWNER_REASSIGNED"
REASON_ESTIMATE_ADJUSTED = "ESTIMATE_ADJUSTED"
NOTE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def match_invoice_line(accrual: GRNIAccrual, lines: Sequence[InvoiceItemIn]) -> InvoiceItemIn | None:
    """Find the invoice line billing ``accrual``.

    Lines referencing the receipt item win; otherwise fall back to a
    case-insensitive exact description match.
    """

    for line in lines:
        if line.goods_receipt_item_id is not None and line.goods_receipt_item_id == accrual.goods_receipt_item_id:
            return line
    wanted = (accrual.description or "").lower()
    for line in lines:
        if line.description is not None and line.description.lower() == wanted:
            return line
    return None


class AccrualLedgerService:
    """Company-scoped accrual lifecycle operations."""

    def __init__(
        self,
        session: Session,
        company: CompanyContext,
        clock: Clock | None = None,
        owner_selector: OwnerSelector | None = None,
    ) -> None:
        self.session = session
        self.company = company
        self.clock = clock or SystemClock()
        self.settings = get_settings()
        self.accruals = AccrualRepository(session)
        self.directory = DirectoryRepository(session)
        self.owners = OwnerResolver(session, company, selector=owner_selector)
        self.audit = AuditTrail(session, company, clock=self.clock, best_effort=BestEffort(session))

    # -- receipt confirmation -------------------------------------------------

    def create_for_receipt(self, receipt: GoodsReceiptIn, user_id: int) -> AccrualCreationResult:
        """Open one PENDIENTE accrual per receipt line with quantity and price above zero."""

        now = self.clock.now()
        period = period_of(now)
        already_accrued = self.accruals.existing_item_ids(self.company, receipt.id)
        result = AccrualCreationResult()

        for item in receipt.items:
            quantity = to_decimal(item.accepted_quantity)
            unit_price = to_decimal(item.unit_price)
            if quantity <= 0 or unit_price <= 0:
                continue
            amount = line_amount(quantity, unit_price)
            if amount <= 0:
                continue
            if item.id in already_accrued:
                result.skipped += 1
                continue

            assignment = self.owners.resolve_safely()
            try:
                accrual = self._insert_accrual(receipt, item, amount, assignment, period, user_id)
            except AccrualWriteError:
                logger.exception("GRNI accrual insert failed for receipt %s item %s", receipt.id, item.id)
                result.failed += 1
                continue

            self.audit.record(
                accrual.id,
                AuditAction.CREATE,
                user_id,
                to_state=AccrualStatus.PENDIENTE,
                amount_after=amount,
                to_owner_id=assignment.owner_id,
                details={
                    "goods_receipt_id": receipt.id,
                    "item_id": item.id,
                    "supplier_item_id": item.supplier_item_id,
                    "owner_role": assignment.owner_role,
                },
            )
            already_accrued.add(item.id)
            result.created += 1
            result.estimated_total += amount

        self._commit()
        logger.info(
            "GRNI created %s accruals for %s (receipt %s, %s failed, %s skipped)",
            result.created,
            result.estimated_total,
            receipt.id,
            result.failed,
            result.skipped,
        )
        return result

    def _insert_accrual(
        self,
        receipt: GoodsReceiptIn,
        item: GoodsReceiptItemIn,
        amount: Decimal,
        assignment: OwnerAssignment,
        period: str,
        user_id: int,
    ) -> GRNIAccrual:
        accrual = GRNIAccrual(
            company_id=self.company.company_id,
            goods_receipt_id=receipt.id,
            goods_receipt_item_id=item.id,
            goods_receipt_number=receipt.number,
            supplier_id=receipt.supplier_id,
            description=item.description or f"Item {item.supplier_item_id or item.id}",
            estimated_amount=amount,
            status=AccrualStatus.PENDIENTE,
            creation_period=period,
            currency=receipt.currency or self.settings.default_currency,
            doc_type=receipt.doc_type or self.settings.default_doc_type,
            owner_id=assignment.owner_id,
            owner_role=assignment.owner_role,
            alert_sent=False,
            created_by=user_id,
            created_at=self.clock.now(),
        )
        try:
            with self.session.begin_nested():
                self.session.add(accrual)
        except SQLAlchemyError as exc:
            raise AccrualWriteError(f"Could not persist accrual for item {item.id}") from exc
        return accrual

    # -- invoice linking --------------------------------------------------------

    def reverse_for_invoice(self, goods_receipt_id: str, invoice: InvoiceIn, user_id: int) -> ReversalResult:
        """Close every pending accrual of the receipt against the linked invoice."""

        pending = self.accruals.list_pending_for_receipt(self.company, goods_receipt_id)
        if not pending:
            logger.info("GRNI no pending accruals for receipt %s", goods_receipt_id)
            return ReversalResult()

        now = self.clock.now()
        period = period_of(now)
        result = ReversalResult()

        for accrual in pending:
            accrual_id = accrual.id
            estimated = money(accrual.estimated_amount)
            line = match_invoice_line(accrual, invoice.items)
            # NULL means "no invoice line matched"; a matched zero line stores 0.00
            invoiced = line_amount(line.quantity, line.unit_price) if line is not None else None
            variance = (invoiced if invoiced is not None else ZERO) - estimated

            values = {
                "status": AccrualStatus.FACTURADO,
                "invoice_id": invoice.id,
                "invoice_number": invoice.number,
                "invoiced_amount": invoiced,
                "variance": variance,
                "invoicing_period": period,
                "reversed_at": now,
                "reversed_by": user_id,
                "reason_code": REASON_INVOICE_LINKED,
                "reason_text": f"Facturado con factura #{invoice.id}",
            }
            try:
                with self.session.begin_nested():
                    transitioned = self.accruals.transition_pending(accrual, values)
            except SQLAlchemyError:
                logger.exception("GRNI reversal failed for accrual %s", accrual_id)
                continue
            if not transitioned:
                logger.info("GRNI accrual %s left PENDIENTE concurrently; skipping", accrual_id)
                continue

            self.audit.record(
                accrual_id,
                AuditAction.FACTURED,
                user_id,
                from_state=AccrualStatus.PENDIENTE,
                to_state=AccrualStatus.FACTURADO,
                amount_before=estimated,
                amount_after=invoiced,
                reason_code=REASON_INVOICE_LINKED,
                reason_text=f"Vinculado a factura #{invoice.id}",
                details={
                    "invoice_id": invoice.id,
                    "variance": variance,
                    "invoicing_period": period,
                    "matched": line is not None,
                },
            )
            result.reversed += 1
            result.variance_total += variance

        self._commit()
        logger.info(
            "GRNI reversed %s accruals for receipt %s with total variance %s",
            result.reversed,
            goods_receipt_id,
            result.variance_total,
        )
        return result

    # -- receipt void -----------------------------------------------------------

    def void_for_receipt(self, goods_receipt_id: str, user_id: int, reason: str) -> VoidResult:
        """Move the receipt's pending accruals to ANULADO in one bulk update."""

        pending = self.accruals.list_pending_for_receipt(self.company, goods_receipt_id)
        if not pending:
            return VoidResult()

        snapshot = [(accrual.id, money(accrual.estimated_amount)) for accrual in pending]
        now = self.clock.now()
        values = {
            "status": AccrualStatus.ANULADO,
            "reversed_at": now,
            "reversed_by": user_id,
            "reversal_reason": reason,
            "reason_code": REASON_RECEIPT_VOIDED,
            "reason_text": reason,
        }
        try:
            voided = self.accruals.void_pending(self.company, pending, values)
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise AccrualWriteError(f"Could not void accruals of receipt {goods_receipt_id}") from exc

        if voided != len(pending):
            logger.warning(
                "GRNI void of receipt %s touched %s of %s pending accruals", goods_receipt_id, voided, len(pending)
            )
            still_ours = {accrual.id for accrual in pending if accrual.status == AccrualStatus.ANULADO}
            snapshot = [entry for entry in snapshot if entry[0] in still_ours]

        for accrual_id, estimated in snapshot:
            self.audit.record(
                accrual_id,
                AuditAction.VOID,
                user_id,
                from_state=AccrualStatus.PENDIENTE,
                to_state=AccrualStatus.ANULADO,
                amount_before=estimated,
                reason_code=REASON_RECEIPT_VOIDED,
                reason_text=reason,
                details={"goods_receipt_id": goods_receipt_id},
            )

        self._commit()
        logger.info("GRNI voided %s accruals for receipt %s", voided, goods_receipt_id)
        return VoidResult(voided=voided)

    # -- follow-up ----------------------------------------------------------------

    def add_note(self, accrual_id: str, user_id: int, note: str) -> NoteResult:
        """Append a timestamped line to the accrual's follow-up notes."""

        accrual = self.accruals.get_for_company(self.company, accrual_id)
        if accrual is None:
            return NoteResult(success=False)

        now = self.clock.now()
        stamp = now.strftime(NOTE_TIMESTAMP_FORMAT)
        line = f"[{stamp}] {note}"
        accrual.follow_up_notes = f"{accrual.follow_up_notes}\n{line}" if accrual.follow_up_notes else line
        accrual.follow_up_at = now
        self._flush()

        self.audit.record(
            accrual.id,
            AuditAction.ADD_NOTE,
            user_id,
            reason_text=note,
            details={"timestamp": stamp},
        )
        self._commit()
        return NoteResult(success=True)

    def reassign_owner(self, accrual_id: str, owner_id: int, user_id: int, reason: str | None = None) -> AccrualRead:
        accrual = self._get_pending(accrual_id)
        if not self.directory.is_active_member(self.company, owner_id):
            raise ValidationError(f"User {owner_id} is not an active member of this company")

        previous_owner = accrual.owner_id
        accrual.owner_id = owner_id
        self._flush()
        self.audit.record(
            accrual.id,
            AuditAction.ASSIGN_OWNER,
            user_id,
            from_owner_id=previous_owner,
            to_owner_id=owner_id,
            reason_code=REASON_OWNER_REASSIGNED,
            reason_text=reason,
            details={"owner_role": accrual.owner_role},
        )
        self._commit()
        self.session.refresh(accrual)
        return AccrualRead.model_validate(accrual)

    def adjust_estimate(self, accrual_id: str, amount: Decimal, user_id: int, reason: str) -> AccrualRead:
        new_amount = money(amount)
        if new_amount <= 0:
            raise ValidationError("Estimated amount must be greater than zero")
        accrual = self._get_pending(accrual_id)

        previous_amount = money(accrual.estimated_amount)
        accrual.estimated_amount = new_amount
        self._flush()
        self.audit.record(
            accrual.id,
            AuditAction.ADJUST,
            user_id,
            from_state=accrual.status,
            to_state=accrual.status,
            amount_before=previous_amount,
            amount_after=new_amount,
            reason_code=REASON_ESTIMATE_ADJUSTED,
            reason_text=reason,
        )
        self._commit()
        self.session.refresh(accrual)
        return AccrualRead.model_validate(accrual)

    def _get_pending(self, accrual_id: str) -> GRNIAccrual:
        accrual = self.accruals.get_for_company(self.company, accrual_id)
        if accrual is None:
            raise NotFoundError("Accrual not found")
        if accrual.status != AccrualStatus.PENDIENTE:
            raise ConflictError(f"Accrual is {accrual.status.value}; only PENDIENTE accruals can change")
        return accrual

    def _flush(self) -> None:
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise AccrualWriteError("Could not persist accrual change") from exc

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise AccrualWriteError("Could not commit accrual changes") from exc
