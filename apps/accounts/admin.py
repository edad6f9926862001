from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from apps.trust.policy import TrustTier, get_trust_tier
from .models import User


TIER_COLORS = {
    TrustTier.CRITICAL: '#dc2626',
    TrustTier.LOW: '#ef4444',
    TrustTier.MEDIUM: '#f59e0b',
    TrustTier.HIGH: '#10b981',
}


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin interface for User model.

    Trust scores are shown but never editable here; use the trust reset
    endpoint so the change is recorded in the audit trail.
    """

    list_display = [
        'email',
        'display_name',
        'trust_badge',
        'is_active',
        'is_staff',
        'created_at',
        'last_login',
    ]

    list_filter = [
        'is_active',
        'is_staff',
        'is_superuser',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
        'phone',
    ]

    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    fieldsets = (
        ('Basic Information', {
            'fields': ('email', 'display_name', 'phone', 'avatar', 'bio', 'password')
        }),
        ('Trust', {
            'fields': ('trust_score', 'trust_version'),
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Preferences', {
            'fields': ('preferences',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'last_login'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        ('Create User', {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2'),
        }),
    )

    readonly_fields = [
        'trust_score',
        'trust_version',
        'created_at',
        'updated_at',
        'last_login',
    ]

    filter_horizontal = ['groups', 'user_permissions']

    def trust_badge(self, obj):
        """Trust score colored by tier."""
        score = obj.current_trust_score
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            TIER_COLORS[get_trust_tier(score)],
            score,
        )
    trust_badge.short_description = 'Trust'
    trust_badge.admin_order_field = 'trust_score'
