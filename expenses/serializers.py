from rest_framework import serializers
from core.constants import ExpenseCategory, PaymentMethod
from core.dto import ExpenseDTO
from .models import Expense


class ExpenseSerializer(serializers.ModelSerializer):
    approved_by_name = serializers.CharField(source='approved_by.display_name', read_only=True, default=None)

    class Meta:
        model = Expense
        fields = [
            'id', 'residence', 'title', 'description', 'category', 'amount', 'expense_date',
            'vendor_name', 'invoice_number', 'status', 'payment_method', 'payment_reference', 'paid_at',
            'approved_by', 'approved_by_name', 'approved_at', 'cancellation_reason', 'notes',
            'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ExpenseWriteSerializer(serializers.Serializer):
    """Input for drafting or editing an expense; status changes go through the actions"""
    title = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    expense_date = serializers.DateField()
    category = serializers.ChoiceField(choices=ExpenseCategory.CHOICES, default=ExpenseCategory.OTHER)
    description = serializers.CharField(required=False, allow_blank=True)
    vendor_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    invoice_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def to_dto(self) -> ExpenseDTO:
        return ExpenseDTO(**self.validated_data)


class ExpensePaySerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=[(m, m) for m in PaymentMethod.CUSTOM])
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    paid_at = serializers.DateTimeField(required=False, allow_null=True)


class ExpenseCancelSerializer(serializers.Serializer):
    reason = serializers.CharField()
