from django.contrib import admin
from .models import Incident


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = ['title', 'residence', 'user', 'status', 'assigned_to', 'created_at']
    list_filter = ['status', 'residence']
    search_fields = ['title', 'description']
    readonly_fields = ['resolved_at', 'created_at', 'updated_at']
