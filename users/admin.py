from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from residences.models import ProfileResidence
from .models import User


class MembershipInline(admin.TabularInline):
    model = ProfileResidence
    extra = 0
    fields = ['residence', 'apartment_number', 'verified']


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Profiles of residents, guards and syndics.

    Syndics are created here: add the user with role "syndic", then pick them
    as syndic on their Residence and set that residence as theirs below.
    Residents and guards are normally added by the syndic through the API.
    """
    list_display = ['email', 'full_name', 'role', 'residence', 'verified', 'is_active', 'date_joined']
    list_filter = ['role', 'verified', 'is_active', 'is_staff']
    search_fields = ['email', 'full_name', 'username', 'phone_number']
    inlines = [MembershipInline]

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Residence Profile', {
            'fields': ('full_name', 'phone_number', 'role', 'residence', 'verified'),
        }),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Residence Profile', {
            'fields': ('email', 'full_name', 'role', 'residence'),
        }),
    )
