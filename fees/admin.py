from django.contrib import admin
from .models import FeeRule, Fee, FeeReminder


@admin.register(FeeRule)
class FeeRuleAdmin(admin.ModelAdmin):
    list_display = ['title', 'residence', 'amount', 'coverage_period_value', 'coverage_period_type',
                    'next_due_date', 'is_active', 'reminder_enabled']
    list_filter = ['is_active', 'coverage_period_type', 'reminder_enabled']
    search_fields = ['title', 'residence__name']
    readonly_fields = ['coverage_end_date', 'last_reminder_sent_at', 'created_at', 'updated_at']


@admin.register(Fee)
class FeeAdmin(admin.ModelAdmin):
    list_display = ['title', 'user', 'residence', 'amount', 'due_date', 'status', 'paid_at']
    list_filter = ['status', 'due_date']
    search_fields = ['title', 'user__full_name', 'user__email']
    date_hierarchy = 'due_date'

    fieldsets = (
        ('Fee', {
            'fields': ('rule', 'user', 'residence', 'title', 'amount')
        }),
        ('Period', {
            'fields': ('period_start', 'period_end', 'due_date')
        }),
        ('Payment', {
            'fields': ('status', 'paid_at')
        }),
    )

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('user', 'residence', 'rule')


@admin.register(FeeReminder)
class FeeReminderAdmin(admin.ModelAdmin):
    list_display = ['fee', 'user', 'reminder_type', 'days_before', 'sent_at']
    list_filter = ['reminder_type']
