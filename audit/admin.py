"""
Audit Log Admin - READ ONLY
"""

import json

from django.contrib import admin
from django.utils.html import format_html
from audit.models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['id', 'timestamp', 'residence', 'user', 'action', 'resource_type', 'resource_id', 'description_short']
    list_filter = ['action', 'resource_type', 'timestamp']
    search_fields = ['description', 'user__email']
    readonly_fields = [
        'residence', 'user', 'action', 'resource_type', 'resource_id',
        'description', 'ip_address', 'metadata_display', 'timestamp',
    ]
    exclude = ['metadata']
    date_hierarchy = 'timestamp'
    ordering = ['-timestamp']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description='Description')
    def description_short(self, obj):
        if len(obj.description) > 80:
            return f"{obj.description[:80]}..."
        return obj.description

    @admin.display(description='Metadata')
    def metadata_display(self, obj):
        if obj.metadata:
            return format_html('<pre>{}</pre>', json.dumps(obj.metadata, indent=2))
        return "No metadata"
