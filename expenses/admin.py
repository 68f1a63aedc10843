from django.contrib import admin
from .models import Expense


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['title', 'residence', 'category', 'amount', 'expense_date', 'status', 'paid_at']
    list_filter = ['status', 'category']
    search_fields = ['title', 'vendor_name', 'invoice_number']
    readonly_fields = ['approved_by', 'approved_at', 'paid_at', 'created_by', 'created_at', 'updated_at']
