from rest_framework import serializers
from core.constants import CoveragePeriodType
from core.dto import FeeRuleDTO, FeeDTO
from .models import FeeRule, Fee
from .periods import describe_coverage


class FeeRuleSerializer(serializers.ModelSerializer):
    """Serializer for FeeRule"""
    coverage_label = serializers.SerializerMethodField()
    fee_count = serializers.SerializerMethodField()

    class Meta:
        model = FeeRule
        fields = [
            'id', 'residence', 'title', 'amount', 'coverage_period_value',
            'coverage_period_type', 'coverage_label', 'start_date', 'next_due_date',
            'coverage_end_date', 'is_active', 'reminder_enabled', 'reminder_days_before',
            'last_reminder_sent_at', 'fee_count', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'residence', 'coverage_end_date', 'last_reminder_sent_at',
            'created_by', 'created_at', 'updated_at',
        ]

    def get_coverage_label(self, obj):
        return describe_coverage(obj.coverage_period_value, obj.coverage_period_type)

    def get_fee_count(self, obj):
        return obj.fees.count()


class FeeRuleWriteSerializer(serializers.Serializer):
    """Input for creating or editing a rule; business checks live in FeeRuleService"""
    title = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    coverage_period_value = serializers.IntegerField(min_value=1, default=1)
    coverage_period_type = serializers.ChoiceField(choices=CoveragePeriodType.CHOICES, default=CoveragePeriodType.MONTH)
    start_date = serializers.DateField()
    next_due_date = serializers.DateField(required=False, allow_null=True)
    is_active = serializers.BooleanField(default=True)
    reminder_enabled = serializers.BooleanField(default=False)
    reminder_days_before = serializers.IntegerField(min_value=0, default=3)

    def to_dto(self) -> FeeRuleDTO:
        return FeeRuleDTO(**self.validated_data)


class GenerateFeesSerializer(serializers.Serializer):
    anchor = serializers.DateField(required=False, allow_null=True)


class FeeSerializer(serializers.ModelSerializer):
    """Serializer for Fee; status is reported as effective_status"""
    resident_name = serializers.CharField(source='user.display_name', read_only=True)
    resident_email = serializers.CharField(source='user.email', read_only=True)
    rule_title = serializers.CharField(source='rule.title', read_only=True, default=None)
    effective_status = serializers.ReadOnlyField()

    class Meta:
        model = Fee
        fields = [
            'id', 'rule', 'rule_title', 'user', 'resident_name', 'resident_email',
            'residence', 'title', 'amount', 'due_date', 'period_start', 'period_end',
            'status', 'effective_status', 'paid_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class FeeWriteSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False)
    title = serializers.CharField(max_length=255, required=False)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    due_date = serializers.DateField(required=False)

    def to_dto(self) -> FeeDTO:
        data = self.validated_data
        return FeeDTO(
            user_id=data.get('user_id'),
            title=data.get('title', ''),
            amount=data.get('amount'),
            due_date=data.get('due_date'),
        )


class BulkFeeSerializer(serializers.Serializer):
    """Exceptional fee for several apartments"""
    apartment_numbers = serializers.ListField(child=serializers.CharField(max_length=20), allow_empty=False)
    title = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    due_date = serializers.DateField()
    per_apartment = serializers.BooleanField(default=False)
