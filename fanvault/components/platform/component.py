"""
Platform component.

Singleton platform settings with rule-file fallback, and report moderation.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fanvault.domain.entities import Identity, PlatformSettings, Report, ReportStatus
from fanvault.domain.errors import NotFound
from fanvault.domain.policy import PolicyEngine, require_role
from fanvault.domain.state import transition
from fanvault.ports.clock import ClockPort
from fanvault.ports.repo import PlatformSettingsRepoPort
from fanvault.ports.uow import UnitOfWorkFactory
from fanvault.rules.models import PlatformRules

from .models import CreateReportInput, UpdateSettingsInput

logger = logging.getLogger(__name__)


def default_settings(rules: PlatformRules, now: datetime) -> PlatformSettings:
    """Settings used while no row has been stored."""
    return PlatformSettings(
        platform_fee_percentage=rules.platform_fee_percentage,
        min_subscription_price=rules.min_subscription_price,
        max_subscription_price=rules.max_subscription_price,
        updated_at=now,
    )


def effective_settings(
    repo: PlatformSettingsRepoPort, rules: PlatformRules, now: datetime
) -> PlatformSettings:
    return repo.get() or default_settings(rules, now)


class PlatformService:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: ClockPort,
        platform_rules: PlatformRules,
        policy: PolicyEngine,
    ):
        self.uow_factory = uow_factory
        self.clock = clock
        self.platform_rules = platform_rules
        self.policy = policy

    # --- Settings ---

    def get_settings(self) -> PlatformSettings:
        with self.uow_factory() as uow:
            return effective_settings(uow.settings, self.platform_rules, self.clock.now())

    def update_settings(
        self, actor: Identity | None, inp: UpdateSettingsInput
    ) -> PlatformSettings:
        """
        Admin-only settings update.

        Raises:
            PermissionDenied: actor is not an admin
            InvalidState: fee outside 0-100 or min above max
        """
        require_role(actor, "admin")
        now = self.clock.now()

        with self.uow_factory(write=True) as uow:
            current = effective_settings(uow.settings, self.platform_rules, now)
            updated = PlatformSettings(
                platform_fee_percentage=(
                    inp.platform_fee_percentage
                    if inp.platform_fee_percentage is not None
                    else current.platform_fee_percentage
                ),
                min_subscription_price=(
                    inp.min_subscription_price
                    if inp.min_subscription_price is not None
                    else current.min_subscription_price
                ),
                max_subscription_price=(
                    inp.max_subscription_price
                    if inp.max_subscription_price is not None
                    else current.max_subscription_price
                ),
                updated_at=now,
            )
            uow.settings.save(updated)

        if updated.platform_fee_percentage != current.platform_fee_percentage:
            logger.info(
                "Platform fee changed from %s%% to %s%%",
                current.platform_fee_percentage,
                updated.platform_fee_percentage,
            )
        return updated

    # --- Reports ---

    def create_report(self, actor: Identity | None, inp: CreateReportInput) -> Report:
        actor = self.policy.require(actor, "reports:create")
        now = self.clock.now()
        report = Report(
            reporter_id=actor.user_id,
            reported_user_id=inp.reported_user_id,
            reported_post_id=inp.reported_post_id,
            reason=inp.reason,
            created_at=now,
            updated_at=now,
        )

        with self.uow_factory(write=True) as uow:
            if inp.reported_user_id and uow.profiles.get(inp.reported_user_id) is None:
                raise NotFound("Reported user not found")
            if inp.reported_post_id and uow.posts.get(inp.reported_post_id) is None:
                raise NotFound("Reported post not found")
            uow.reports.add(report)

        logger.info("Report %s filed by %s", report.id, actor.user_id)
        return report

    def transition_report(
        self,
        actor: Identity | None,
        report_id: UUID,
        new_status: ReportStatus,
        admin_notes: str | None = None,
    ) -> Report:
        require_role(actor, "admin")
        with self.uow_factory(write=True) as uow:
            report = uow.reports.get(report_id)
            if report is None:
                raise NotFound("Report not found")
            updated = transition(report, new_status, self.clock.now(), admin_notes)
            if updated == report:
                logger.debug("Report %s already %s", report_id, new_status)
                return report
            uow.reports.save(updated)

        logger.info("Report %s: %s -> %s", report_id, report.status, updated.status)
        return updated

    def list_reports(
        self, actor: Identity | None, status: ReportStatus | None = None
    ) -> list[Report]:
        require_role(actor, "admin")
        with self.uow_factory() as uow:
            return uow.reports.list_reports(status)
