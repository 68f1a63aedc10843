from django.contrib import admin
from .models import RegistrationRequest


@admin.register(RegistrationRequest)
class RegistrationRequestAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'residence', 'apartment_number', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['full_name', 'email', 'apartment_number']
    readonly_fields = ['reviewed_by', 'reviewed_at', 'profile', 'created_at', 'updated_at']
