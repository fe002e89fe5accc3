"""Tests for the family budget service."""

from datetime import date

import pytest

from conftest import make_transaction, run
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import MemberStatus
from smart_budget.models.report import TimeRange
from smart_budget.models.transaction import Category, TransactionType
from smart_budget.services.family import (
    FamilyBudgetService,
    FamilyError,
    generate_verification_code,
)
from smart_budget.services.storage import NotFoundError, StorageError


TODAY = date(2024, 6, 10)


def fixed_code() -> str:
    return "123456"


class FakeMemberStores:
    """Member transactions keyed by email; some emails fail to load."""

    def __init__(self, data=None, broken=()):
        self.data = data or {}
        self.broken = set(broken)

    async def __call__(self, email):
        if email in self.broken:
            raise StorageError(f"cannot read {email}")
        return self.data.get(email, [])


@pytest.fixture
def service(record_storage, audit_logger):
    return FamilyBudgetService(record_storage, audit_logger, code_generator=fixed_code)


class TestInvitations:
    """Tests for inviting and verifying members."""

    def test_code_format(self):
        """Test generated codes are six digits."""
        for _ in range(20):
            code = generate_verification_code()
            assert len(code) == 6 and code.isdigit()

    def test_invite(self, service):
        """Test a pending member is created from the email."""
        member = run(service.invite_member("  Priya@Example.com "))
        assert member.email == "priya@example.com"
        assert member.name == "priya"
        assert member.status == MemberStatus.PENDING
        assert member.verification_code == "123456"

    @pytest.mark.parametrize("email", ["", "not-an-email", "a@b", "two words@x.com"])
    def test_invalid_email(self, service, email):
        """Test malformed addresses are rejected."""
        with pytest.raises(FamilyError):
            run(service.invite_member(email))

    def test_duplicate_invite(self, service):
        """Test the same email cannot be invited twice."""
        run(service.invite_member("priya@example.com"))
        with pytest.raises(FamilyError, match="already been invited"):
            run(service.invite_member("PRIYA@example.com"))

    def test_verify(self, service, audit_storage):
        """Test the right code verifies and clears the code."""
        member = run(service.invite_member("priya@example.com"))
        verified = run(service.verify_member(member.id, " 123456 ", today=TODAY))
        assert verified.status == MemberStatus.VERIFIED
        assert verified.joined_date == TODAY
        assert verified.verification_code is None

        events = run(audit_storage.get_events_by_entity("family_member", member.id))
        assert [e.event_type for e in events] == [
            AuditEventType.FAMILY_MEMBER_INVITED,
            AuditEventType.FAMILY_MEMBER_VERIFIED,
        ]

    def test_wrong_code(self, service):
        """Test a wrong code leaves the member pending."""
        member = run(service.invite_member("priya@example.com"))
        with pytest.raises(FamilyError, match="does not match"):
            run(service.verify_member(member.id, "654321"))
        assert run(service.list_members())[0].status == MemberStatus.PENDING

    def test_verify_twice(self, service):
        """Test verified members cannot be verified again."""
        member = run(service.invite_member("priya@example.com"))
        run(service.verify_member(member.id, "123456"))
        with pytest.raises(FamilyError, match="already verified"):
            run(service.verify_member(member.id, "123456"))

    def test_unknown_member(self, service):
        """Test operations on missing members."""
        member = run(service.invite_member("priya@example.com"))
        assert run(service.remove_member(member.id))
        with pytest.raises(NotFoundError):
            run(service.verify_member(member.id, "123456"))
        with pytest.raises(NotFoundError):
            run(service.toggle_sharing(member.id))
        assert not run(service.remove_member(member.id))


class TestOverview:
    """Tests for the combined family overview."""

    def _verified(self, service, email):
        member = run(service.invite_member(email))
        return run(service.verify_member(member.id, "123456", today=TODAY))

    def test_owner_only(self, service):
        """Test the owner always counts as a member."""
        own = [make_transaction(500, date(2024, 6, 5), category=Category.FOOD)]
        overview = run(service.overview(own, today=TODAY))
        assert overview.member_count == 1
        assert overview.members[0].name == "You"
        assert overview.total_expenses == 500.0

    def test_combines_shared_members(self, record_storage, audit_logger):
        """Test verified sharing members are added and others skipped."""
        stores = FakeMemberStores(data={
            "priya@example.com": [
                make_transaction(40000, date(2024, 6, 1), TransactionType.CREDIT, Category.SALARY),
                make_transaction(1500, date(2024, 6, 3), category=Category.GROCERIES),
            ],
            "raj@example.com": [make_transaction(999, date(2024, 6, 4))],
        })
        service = FamilyBudgetService(
            record_storage, audit_logger, member_loader=stores, code_generator=fixed_code
        )
        self._verified(service, "priya@example.com")
        raj = self._verified(service, "raj@example.com")
        run(service.toggle_sharing(raj.id))
        run(service.invite_member("pending@example.com"))

        own = [make_transaction(500, date(2024, 6, 5), category=Category.FOOD)]
        overview = run(service.overview(own, TimeRange.MONTH, today=TODAY))

        assert overview.member_count == 2
        assert [m.name for m in overview.members] == ["You", "priya"]
        assert overview.total_income == 40000.0
        assert overview.total_expenses == 2000.0
        assert overview.net == 38000.0
        assert [c.category for c in overview.categories] == ["Groceries", "Food & Dining"]

    def test_unreadable_member_skipped(self, record_storage):
        """Test a failing member store does not break the overview."""
        stores = FakeMemberStores(broken={"priya@example.com"})
        service = FamilyBudgetService(record_storage, member_loader=stores, code_generator=fixed_code)
        self._verified(service, "priya@example.com")
        overview = run(service.overview([], today=TODAY))
        assert overview.member_count == 1

    def test_time_range_applies_to_members(self, record_storage):
        """Test member transactions are filtered to the same window."""
        stores = FakeMemberStores(data={
            "priya@example.com": [make_transaction(700, date(2024, 1, 1))],
        })
        service = FamilyBudgetService(record_storage, member_loader=stores, code_generator=fixed_code)
        self._verified(service, "priya@example.com")
        overview = run(service.overview([], TimeRange.WEEK, today=TODAY))
        assert overview.total_expenses == 0.0
        assert overview.members[1].transaction_count == 0
