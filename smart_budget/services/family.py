"""
Family Budget Service

Members are invited by email and must confirm a six-digit code before
their data counts towards the family overview. A verified member can
still opt out of sharing at any time.

Each member's transactions live in their own store, keyed by their email.
The service reads them through an injected `member_loader` so it has no
knowledge of where other users' data is kept.
"""

import re
import secrets
from datetime import date
from typing import Awaitable, Callable, Optional, Sequence
from uuid import UUID

import structlog

from smart_budget.analytics import category_breakdown, filter_by_range, summarize
from smart_budget.audit import AuditLogger
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import FamilyMember, MemberStatus
from smart_budget.models.report import (
    FamilyOverview,
    MemberSpending,
    TimeRange,
)
from smart_budget.models.transaction import Transaction
from smart_budget.services.storage import (
    FAMILY_MEMBERS,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MemberLoader = Callable[[str], Awaitable[list[Transaction]]]


class FamilyError(ValueError):
    """Invalid invitation, verification or duplicate member."""
    pass


def generate_verification_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


class FamilyBudgetService:
    """Manages family members and builds the combined overview."""

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        member_loader: Optional[MemberLoader] = None,
        code_generator: Callable[[], str] = generate_verification_code,
    ):
        self._records = record_storage
        self._audit = audit_logger
        self._member_loader = member_loader
        self._generate_code = code_generator

    async def list_members(self) -> list[FamilyMember]:
        members = await self._records.list_records(FAMILY_MEMBERS, FamilyMember)
        members.sort(key=lambda m: m.invited_at)
        return members

    async def _get(self, member_id: UUID) -> FamilyMember:
        member = await self._records.get_record(FAMILY_MEMBERS, member_id, FamilyMember)
        if member is None:
            raise NotFoundError(f"Family member not found: {member_id}")
        return member

    async def invite_member(self, email: str) -> FamilyMember:
        """
        Create a pending member with a fresh verification code.

        The code is returned on the member so the caller can deliver it.

        Raises:
            FamilyError: Malformed email or already invited.
        """
        email = (email or "").strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise FamilyError(f"Invalid email address: {email or '(empty)'}")

        for existing in await self.list_members():
            if existing.email.lower() == email:
                raise FamilyError(f"{email} has already been invited")

        member = FamilyMember(
            email=email,
            name=email.split("@")[0],
            verification_code=self._generate_code(),
        )
        await self._records.save_record(FAMILY_MEMBERS, member)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.FAMILY_MEMBER_INVITED,
                entity_type="family_member",
                entity_id=member.id,
                description=f"Invited {email}",
            )
        return member

    async def verify_member(
        self,
        member_id: UUID,
        code: str,
        today: Optional[date] = None,
    ) -> FamilyMember:
        """
        Raises:
            FamilyError: Wrong code or member already verified.
            NotFoundError: Unknown member.
        """
        member = await self._get(member_id)
        if member.status == MemberStatus.VERIFIED:
            raise FamilyError(f"{member.email} is already verified")
        if not member.verification_code or not secrets.compare_digest(
            member.verification_code, (code or "").strip()
        ):
            raise FamilyError("Verification code does not match")

        verified = member.model_copy(update={
            "status": MemberStatus.VERIFIED,
            "joined_date": today or date.today(),
            "verification_code": None,
        })
        await self._records.save_record(FAMILY_MEMBERS, verified)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.FAMILY_MEMBER_VERIFIED,
                entity_type="family_member",
                entity_id=member_id,
                description=f"{member.email} joined the family budget",
            )
        return verified

    async def toggle_sharing(self, member_id: UUID) -> FamilyMember:
        member = await self._get(member_id)
        updated = member.model_copy(update={"shared_data": not member.shared_data})
        await self._records.save_record(FAMILY_MEMBERS, updated)
        return updated

    async def remove_member(self, member_id: UUID) -> bool:
        removed = await self._records.delete_record(FAMILY_MEMBERS, member_id)
        if removed and self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.FAMILY_MEMBER_REMOVED,
                entity_type="family_member",
                entity_id=member_id,
                description="Family member removed",
            )
        return removed

    async def overview(
        self,
        own_transactions: Sequence[Transaction],
        time_range: TimeRange = TimeRange.MONTH,
        today: Optional[date] = None,
        owner_name: str = "You",
    ) -> FamilyOverview:
        """
        Combined income, expenses and categories for the owner plus every
        verified member who shares data.

        A member whose store cannot be read is left out and logged.
        """
        contributions: list[tuple[MemberSpending, list[Transaction]]] = []

        own = filter_by_range(own_transactions, time_range, today=today)
        contributions.append((self._member_spending(owner_name, None, own), own))

        if self._member_loader is not None:
            for member in await self.list_members():
                if member.status != MemberStatus.VERIFIED or not member.shared_data:
                    continue
                try:
                    loaded = await self._member_loader(member.email)
                except StorageError as e:
                    logger.warning("family_member_load_failed", email=member.email, error=str(e))
                    continue
                selected = filter_by_range(loaded, time_range, today=today)
                contributions.append(
                    (self._member_spending(member.name, member.email, selected), selected)
                )

        everything = [t for _, transactions in contributions for t in transactions]
        summary = summarize(everything)
        return FamilyOverview(
            total_income=summary.income,
            total_expenses=summary.expenses,
            net=summary.net,
            member_count=len(contributions),
            members=[spending for spending, _ in contributions],
            categories=category_breakdown(everything),
        )

    @staticmethod
    def _member_spending(
        name: str,
        email: Optional[str],
        transactions: list[Transaction],
    ) -> MemberSpending:
        summary = summarize(transactions)
        return MemberSpending(
            name=name,
            email=email,
            income=summary.income,
            expenses=summary.expenses,
            transaction_count=summary.transaction_count,
        )

