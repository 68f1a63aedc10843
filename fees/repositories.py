"""
Fee repository - Data access layer for fee rules and the fee ledger.
"""
from typing import List
from django.db.models import QuerySet
from core.constants import FeeStatus
from core.repositories import BaseRepository
from .models import FeeRule, Fee, FeeReminder


class FeeRuleRepository(BaseRepository[FeeRule]):
    """Repository for FeeRule model"""

    def __init__(self):
        super().__init__(FeeRule)

    def get_by_residence(self, residence_id: int) -> QuerySet[FeeRule]:
        return self.get_all(residence_id=residence_id)

    def get_active(self) -> QuerySet[FeeRule]:
        return self.get_all(is_active=True).select_related('residence')

    def get_with_reminders(self) -> QuerySet[FeeRule]:
        return self.get_active().filter(reminder_enabled=True)


class FeeRepository(BaseRepository[Fee]):
    """Repository for Fee model"""

    def __init__(self):
        super().__init__(Fee)

    def get_by_residence(self, residence_id: int) -> QuerySet[Fee]:
        return self.get_all(residence_id=residence_id).select_related('user', 'rule')

    def user_ids_billed_for_period(self, rule_id: int, period_start) -> List[int]:
        """Residents already holding a fee for (rule, period_start)"""
        return list(
            self.get_all(rule_id=rule_id, period_start=period_start).values_list('user_id', flat=True)
        )

    def outstanding_for_user(self, residence_id: int, user_id: int) -> QuerySet[Fee]:
        return self.get_all(
            residence_id=residence_id,
            user_id=user_id,
            status__in=FeeStatus.OUTSTANDING,
        ).order_by('due_date')

    def mark_paid(self, fee_ids, paid_at) -> int:
        """
        Conditionally mark outstanding fees as paid.

        Returns the number of rows changed; fees already paid are not touched.
        """
        return self.model.objects.filter(
            id__in=fee_ids,
            status__in=FeeStatus.OUTSTANDING,
        ).update(status=FeeStatus.PAID, paid_at=paid_at)


class FeeReminderRepository(BaseRepository[FeeReminder]):
    """Repository for FeeReminder model"""

    def __init__(self):
        super().__init__(FeeReminder)

    def sent_on(self, fee_id: int, day) -> bool:
        return self.exists(fee_id=fee_id, sent_at__date=day)
