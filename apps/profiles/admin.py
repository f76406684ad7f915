from django.contrib import admin

from .models import Person, Interest, PersonInterest


# PersonInterest Inline Admin ---------------------------------------------------------
class PersonInterestInline(admin.TabularInline):
    model = PersonInterest
    fields = ('interest', 'proficiency_level')
    autocomplete_fields = ['interest']
    extra = 0


# PERSON Admin ------------------------------------------------------------------------
@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'user', 'city', 'location_privacy', 'onboarding_level', 'is_potential_shepherd', 'last_active_at']
    list_filter = ['onboarding_level', 'location_privacy', 'is_potential_shepherd']
    search_fields = ['display_name', 'user__email', 'city', 'community']
    readonly_fields = ['created_at', 'updated_at', 'last_active_at']
    filter_horizontal = ['blocked_persons']
    inlines = [PersonInterestInline]
    fieldsets = (
        ('Identity', {'fields': ('user', 'display_name', 'bio', 'profile_image_url', 'phone')}),
        ('Location', {'fields': ('latitude', 'longitude', 'city', 'region', 'community', 'proximity_radius_km', 'location_privacy')}),
        ('Profile', {'fields': ('age_range', 'gender', 'archetype', 'connection_style', 'personality_traits', 'group_preferences', 'leadership_signals', 'is_potential_shepherd')}),
        ('Safety', {'fields': ('blocked_persons', 'safety_flags')}),
        ('Status', {'fields': ('onboarding_level', 'last_active_at', 'created_at', 'updated_at')}),
    )


# INTEREST Admin ----------------------------------------------------------------------
@admin.register(Interest)
class InterestAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'subcategory', 'popularity']
    list_filter = ['category']
    search_fields = ['name', 'category', 'subcategory']
    ordering = ['category', 'name']
