from django.contrib import admin
from apps.rooms.models import Room, RoomMembership


class RoomMembershipInline(admin.TabularInline):
    """Inline admin for room memberships."""
    model = RoomMembership
    extra = 0
    fields = ['user', 'role', 'joined_at']
    readonly_fields = ['joined_at']


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    """Admin interface for Rooms."""

    list_display = ['name', 'owner', 'member_count', 'max_members', 'created_at']
    list_filter = ['created_at']
    search_fields = ['name', 'description', 'owner__email', 'invite_code']
    readonly_fields = ['invite_code', 'created_at', 'updated_at']
    inlines = [RoomMembershipInline]
    ordering = ['-created_at']

    def member_count(self, obj):
        """Show number of members."""
        return obj.memberships.count()
    member_count.short_description = 'Members'
