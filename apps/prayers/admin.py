from django.contrib import admin

from .models import PrayerPost, PrayerResponse


# PRAYER Admin ------------------------------------------------------------------------
@admin.register(PrayerPost)
class PrayerPostAdmin(admin.ModelAdmin):
    list_display = ['author', 'short_content', 'prayer_count', 'created_at', 'deleted_at']
    list_filter = ['created_at', 'deleted_at']
    search_fields = ['content', 'author__display_name']
    raw_id_fields = ['author']
    readonly_fields = ['prayer_count', 'created_at', 'updated_at']

    def short_content(self, obj):
        return obj.content[:60]

    short_content.short_description = 'Content'


@admin.register(PrayerResponse)
class PrayerResponseAdmin(admin.ModelAdmin):
    list_display = ['prayer', 'person', 'created_at']
    raw_id_fields = ['prayer', 'person']
