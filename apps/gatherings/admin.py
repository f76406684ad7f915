from django.contrib import admin

from .models import Group, GroupMembership


# Membership Inline Admin -------------------------------------------------------------
class GroupMembershipInline(admin.TabularInline):
    model = GroupMembership
    fields = ('person', 'role', 'status', 'joined_at', 'last_read_at')
    readonly_fields = ('joined_at', 'last_read_at')
    raw_id_fields = ('person',)
    extra = 0


# GROUP Admin -------------------------------------------------------------------------
@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'category', 'status', 'is_public', 'is_virtual', 'current_size', 'max_size', 'created_by', 'created_at']
    list_filter = ['category', 'type', 'status', 'is_public', 'is_virtual']
    search_fields = ['name', 'description', 'location_name', 'created_by__display_name']
    readonly_fields = ['current_size', 'created_at', 'updated_at']
    raw_id_fields = ['created_by']
    filter_horizontal = ['leaders']
    inlines = [GroupMembershipInline]


# MEMBERSHIP Admin --------------------------------------------------------------------
@admin.register(GroupMembership)
class GroupMembershipAdmin(admin.ModelAdmin):
    list_display = ['person', 'group', 'role', 'status', 'joined_at', 'last_read_at']
    list_filter = ['role', 'status']
    search_fields = ['person__display_name', 'group__name']
    raw_id_fields = ['person', 'group']
