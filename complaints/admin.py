from django.contrib import admin
from .models import Complaint, ComplaintEvidence


class ComplaintEvidenceInline(admin.TabularInline):
    model = ComplaintEvidence
    extra = 0
    readonly_fields = ['file_url', 'file_name', 'file_type', 'file_size', 'mime_type', 'uploaded_by', 'created_at']


@admin.register(Complaint)
class ComplaintAdmin(admin.ModelAdmin):
    list_display = ['title', 'residence', 'complainant', 'complained_about', 'reason', 'privacy', 'status', 'created_at']
    list_filter = ['status', 'reason', 'privacy']
    search_fields = ['title', 'description']
    readonly_fields = ['reviewed_at', 'resolved_at', 'created_at', 'updated_at']
    inlines = [ComplaintEvidenceInline]
