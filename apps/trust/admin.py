from django.contrib import admin
from apps.trust.models import TrustAction, WeeklySweepMarker


@admin.register(TrustAction)
class TrustActionAdmin(admin.ModelAdmin):
    """Read-only view of the trust audit trail."""

    list_display = ['user', 'room', 'action', 'points', 'reason', 'created_by', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['user__email', 'reason', 'related_id']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(WeeklySweepMarker)
class WeeklySweepMarkerAdmin(admin.ModelAdmin):
    list_display = ['room', 'week_start', 'bonuses_applied', 'created_at']
    list_filter = ['week_start']
    ordering = ['-week_start']
