from django.contrib import admin
from .models import Residence, ProfileResidence


class ProfileResidenceInline(admin.TabularInline):
    model = ProfileResidence
    extra = 0
    fields = ['profile', 'apartment_number', 'verified']
    raw_id_fields = ['profile']


@admin.register(Residence)
class ResidenceAdmin(admin.ModelAdmin):
    list_display = ['name', 'city', 'syndic', 'created_at']
    search_fields = ['name', 'city', 'address']
    raw_id_fields = ['syndic']
    inlines = [ProfileResidenceInline]


@admin.register(ProfileResidence)
class ProfileResidenceAdmin(admin.ModelAdmin):
    list_display = ['profile', 'residence', 'apartment_number', 'verified']
    list_filter = ['residence', 'verified']
    search_fields = ['profile__email', 'profile__full_name', 'apartment_number']
