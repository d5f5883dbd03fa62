"""Company service handling company CRUD and GRNI alert configuration."""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.company import CompanyContext
from app.db.models import GRNIAlertConfig
from app.repositories.alert_config import AlertConfigRepository
from app.repositories.company import CompanyRepository
from app.schemas.company import AlertConfigRead, AlertConfigUpsert, CompanyCreate, CompanyRead

from .exceptions import ConflictError, NotFoundError


logger = logging.getLogger(__name__)


class CompanyService:
    """Service responsible for company lifecycle actions."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.companies = CompanyRepository(session)
        self.configs = AlertConfigRepository(session)

    def create(self, payload: CompanyCreate) -> CompanyRead:
        if self.companies.get_by_name(payload.name) is not None:
            raise ConflictError("Company name already exists")
        company = self.companies.add(self.companies.model(name=payload.name))
        try:
            self.session.commit()
        except IntegrityError as exc:  # pragma: no cover - concurrent insert with the same name
            self.session.rollback()
            raise ConflictError("Company name already exists") from exc
        self.session.refresh(company)
        logger.info("Company %s created", company.id)
        return CompanyRead.model_validate(company)

    def list(self) -> list[CompanyRead]:
        return [CompanyRead.model_validate(row) for row in self.companies.list_ordered()]

    def get(self, company_id: str) -> CompanyRead:
        company = self.companies.get(company_id)
        if company is None:
            raise NotFoundError("Company not found")
        return CompanyRead.model_validate(company)

    def upsert_alert_config(self, company: CompanyContext, payload: AlertConfigUpsert) -> AlertConfigRead:
        """Replace the active alert configuration; previous rows stay for history."""

        self.configs.deactivate_all(company)
        config = self.configs.add(
            GRNIAlertConfig(
                company_id=company.company_id,
                owner_role_default=payload.owner_role_default,
                yellow_days=payload.yellow_days,
                red_days=payload.red_days,
                critical_days=payload.critical_days,
                notify_emails=list(payload.notify_emails),
                is_active=True,
            )
        )
        self.session.commit()
        self.session.refresh(config)
        logger.info(
            "GRNI alert config for company %s set to %s/%s/%s days",
            company.company_id,
            config.yellow_days,
            config.red_days,
            config.critical_days,
        )
        return AlertConfigRead.model_validate(config)

    def get_alert_config(self, company: CompanyContext) -> AlertConfigRead:
        config = self.configs.get_active(company)
        if config is None:
            raise NotFoundError("No active GRNI alert configuration")
        return AlertConfigRead.model_validate(config)
