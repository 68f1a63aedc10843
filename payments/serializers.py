from rest_framework import serializers
from core.constants import PaymentMethod
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for Payment"""
    resident_name = serializers.CharField(source='user.display_name', read_only=True)
    fee_title = serializers.CharField(source='fee.title', read_only=True, default=None)
    verified_by_name = serializers.CharField(source='verified_by.display_name', read_only=True, default=None)
    receipt_available = serializers.ReadOnlyField()

    class Meta:
        model = Payment
        fields = [
            'id', 'user', 'resident_name', 'residence', 'fee', 'fee_title', 'amount',
            'method', 'status', 'paid_at', 'verified_by', 'verified_by_name', 'note',
            'receipt_available', 'created_at',
        ]
        read_only_fields = fields


class SettleFeesSerializer(serializers.Serializer):
    fee_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    method = serializers.ChoiceField(choices=PaymentMethod.MANUAL)


class CustomPaymentSerializer(serializers.Serializer):
    resident_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    method = serializers.ChoiceField(choices=PaymentMethod.CUSTOM)
    note = serializers.CharField(required=False, allow_blank=True, default='')


class DeclareTransferSerializer(serializers.Serializer):
    fee_id = serializers.IntegerField(min_value=1)
    note = serializers.CharField(required=False, allow_blank=True, default='')
