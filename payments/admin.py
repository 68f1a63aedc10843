from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'residence', 'amount', 'method', 'status', 'paid_at', 'verified_by']
    list_filter = ['status', 'method']
    search_fields = ['user__full_name', 'user__email', 'note']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('user', 'residence', 'fee', 'verified_by')
