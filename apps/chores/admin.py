from django.contrib import admin
from apps.chores.models import Chore


@admin.register(Chore)
class ChoreAdmin(admin.ModelAdmin):
    """Admin interface for chores. Trust impact is set by chore events only."""

    list_display = [
        'title',
        'room',
        'assigned_to',
        'status',
        'priority',
        'due_date',
        'trust_impact',
    ]
    list_filter = ['status', 'priority', 'recurring', 'due_date']
    search_fields = ['title', 'room__name', 'assigned_to__email']
    readonly_fields = ['trust_impact', 'completed_at', 'created_at', 'updated_at']
    date_hierarchy = 'due_date'
    ordering = ['-due_date']

    fieldsets = (
        ('Basic Information', {
            'fields': ('room', 'title', 'description', 'assigned_to', 'created_by')
        }),
        ('Schedule', {
            'fields': ('status', 'priority', 'recurring', 'due_date', 'completed_at')
        }),
        ('Review', {
            'fields': ('confirmed_by', 'disputed_by', 'dispute_reason', 'trust_impact')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
