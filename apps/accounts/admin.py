from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from apps.profiles.models import Person
from django.contrib.auth import get_user_model

CustomUser = get_user_model()


# Person Inline Admin ----------------------------------------------------------------
class PersonInline(admin.StackedInline):
    model = Person
    fields = ('display_name', 'onboarding_level', 'city', 'location_privacy', 'last_active_at')
    readonly_fields = ('last_active_at',)
    extra = 0
    can_delete = False


# CUSTOMUSER ADMIN Manager -----------------------------------------------------------
@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ['email', 'username', 'is_active', 'is_staff', 'date_joined']
    list_filter = ['is_active', 'is_staff', 'date_joined']
    search_fields = ['email', 'username']
    readonly_fields = ['date_joined', 'last_login']
    ordering = ['-date_joined']
    fieldsets = (
        ('Account Info', {'fields': ('email', 'username', 'password')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Dates', {'fields': ('date_joined', 'last_login')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'username', 'password1', 'password2'),
        }),
    )
    filter_horizontal = ('groups', 'user_permissions')
    inlines = [PersonInline]

    def get_inline_instances(self, request, obj=None):
        if obj:
            return [inline(self.model, self.admin_site) for inline in self.inlines]
        return []
