"""
Payment Reminder Service

Monthly reminders fall due on a day of the month. In months shorter than
the chosen day (a reminder on the 31st in February) they fall due on the
last day of the month instead. Weekly, yearly and one-time reminders are
kept as a checklist and never raise due notifications.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from smart_budget.audit import AuditLogger
from smart_budget.config import get_settings
from smart_budget.models.audit import AuditEventType
from smart_budget.models.finance import (
    Alert,
    AlertKind,
    AlertLevel,
    PaymentReminder,
    ReminderFrequency,
    ReminderType,
)
from smart_budget.services.storage import (
    NotFoundError,
    PAYMENT_REMINDERS,
    RecordStorageInterface,
)


class ReminderError(ValueError):
    """Invalid or duplicate reminder."""
    pass


def is_scheduled(reminder: PaymentReminder) -> bool:
    """Whether the reminder has a computed due date (monthly only)."""
    return reminder.frequency == ReminderFrequency.MONTHLY


def _due_in_month(year: int, month: int, due_day: int) -> date:
    return date(year, month, min(due_day, calendar.monthrange(year, month)[1]))


def next_due_date(reminder: PaymentReminder, today: Optional[date] = None) -> date:
    """The next date, today included, on which the reminder falls due."""
    today = today or date.today()
    this_month = _due_in_month(today.year, today.month, reminder.due_day)
    if this_month >= today:
        return this_month
    if today.month == 12:
        return _due_in_month(today.year + 1, 1, reminder.due_day)
    return _due_in_month(today.year, today.month + 1, reminder.due_day)


def days_until_due(reminder: PaymentReminder, today: Optional[date] = None) -> int:
    today = today or date.today()
    return (next_due_date(reminder, today) - today).days


def due_today(
    reminders: list[PaymentReminder],
    today: Optional[date] = None,
) -> list[PaymentReminder]:
    """Open reminders falling due today."""
    return [
        r for r in reminders
        if is_scheduled(r) and not r.completed and days_until_due(r, today) == 0
    ]


def due_soon(
    reminders: list[PaymentReminder],
    within_days: int = 3,
    today: Optional[date] = None,
) -> list[PaymentReminder]:
    """
    Open reminders falling due in the next `within_days` days (not today).

    Wraps across month ends: on the 30th, a reminder on the 1st is due soon.
    Only monthly reminders are considered.
    """
    soon = [
        r for r in reminders
        if is_scheduled(r) and not r.completed and 0 < days_until_due(r, today) <= within_days
    ]
    soon.sort(key=lambda r: days_until_due(r, today))
    return soon


class PaymentReminderService:
    """Stores reminders and turns the due ones into notifications."""

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._records = record_storage
        self._audit = audit_logger
        self._settings = get_settings().app

    async def list_reminders(self) -> list[PaymentReminder]:
        reminders = await self._records.list_records(PAYMENT_REMINDERS, PaymentReminder)
        reminders.sort(key=lambda r: (r.completed, r.due_day, r.title.lower()))
        return reminders

    async def add_reminder(
        self,
        title: str,
        amount: Decimal,
        due_day: int,
        reminder_type: ReminderType = ReminderType.OTHER,
        frequency: ReminderFrequency = ReminderFrequency.MONTHLY,
        account: str = "cash",
    ) -> PaymentReminder:
        """
        Raises:
            ReminderError: Missing title, non-positive amount, a day outside
                1-31, or the same title already due on the same day.
        """
        title = (title or "").strip()
        if not title:
            raise ReminderError("Reminder title is required")
        amount = Decimal(str(amount)).quantize(Decimal("0.01"))
        if amount <= 0:
            raise ReminderError("Amount must be greater than zero")
        if not 1 <= due_day <= 31:
            raise ReminderError("Due day must be between 1 and 31")

        for existing in await self.list_reminders():
            if existing.title.lower() == title.lower() and existing.due_day == due_day:
                raise ReminderError(f"A reminder for '{title}' on day {due_day} already exists")

        reminder = PaymentReminder(
            title=title,
            amount=amount,
            due_day=due_day,
            reminder_type=reminder_type,
            frequency=frequency,
            account=account or "cash",
        )
        await self._records.save_record(PAYMENT_REMINDERS, reminder)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.REMINDER_ADDED,
                entity_type="reminder",
                entity_id=reminder.id,
                description=f"Reminder added: {title} on day {due_day}",
            )
        return reminder

    async def toggle_completed(self, reminder_id: UUID) -> PaymentReminder:
        reminder = await self._records.get_record(PAYMENT_REMINDERS, reminder_id, PaymentReminder)
        if reminder is None:
            raise NotFoundError(f"Reminder not found: {reminder_id}")

        updated = reminder.model_copy(update={"completed": not reminder.completed})
        await self._records.save_record(PAYMENT_REMINDERS, updated)

        if self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.REMINDER_TOGGLED,
                entity_type="reminder",
                entity_id=reminder_id,
                description=(
                    f"Reminder {'completed' if updated.completed else 'reopened'}: "
                    f"{reminder.title}"
                ),
            )
        return updated

    async def delete_reminder(self, reminder_id: UUID) -> bool:
        deleted = await self._records.delete_record(PAYMENT_REMINDERS, reminder_id)
        if deleted and self._audit:
            await self._audit.log_entity_changed(
                event_type=AuditEventType.REMINDER_DELETED,
                entity_type="reminder",
                entity_id=reminder_id,
                description="Reminder deleted",
            )
        return deleted

    async def due_notifications(self, today: Optional[date] = None) -> list[Alert]:
        """Alerts for reminders due today and due within the configured window."""
        reminders = await self.list_reminders()
        alerts = [
            Alert(
                kind=AlertKind.PAYMENT_DUE,
                title=f"{r.title} is due today",
                message=f"Payment of ₹{r.amount:,.2f} for {r.title} is due today.",
                level=AlertLevel.HIGH,
                amount=float(r.amount),
            )
            for r in due_today(reminders, today)
        ]
        for r in due_soon(reminders, self._settings.reminder_due_soon_days, today):
            days = days_until_due(r, today)
            alerts.append(Alert(
                kind=AlertKind.PAYMENT_DUE_SOON,
                title=f"{r.title} due in {days} day{'s' if days != 1 else ''}",
                message=f"₹{r.amount:,.2f} for {r.title} is due on {next_due_date(r, today):%d %b}.",
                level=AlertLevel.WARNING,
                amount=float(r.amount),
            ))
        return alerts
