from django.contrib import admin

from .models import HuddleMessage


# HUDDLE MESSAGE Admin ----------------------------------------------------------------
@admin.register(HuddleMessage)
class HuddleMessageAdmin(admin.ModelAdmin):
    list_display = ['huddle', 'sender', 'short_content', 'created_at', 'deleted_at']
    list_filter = ['created_at', 'deleted_at']
    search_fields = ['content', 'sender__display_name', 'huddle__name']
    raw_id_fields = ['huddle', 'sender']
    readonly_fields = ['created_at']

    def short_content(self, obj):
        return obj.content[:60]

    short_content.short_description = 'Content'
