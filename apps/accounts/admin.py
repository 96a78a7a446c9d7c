from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = DjangoUserAdmin.fieldsets + (("Back office", {"fields": ("role", "default_terminal")}),)
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (("Back office", {"fields": ("role", "default_terminal")}),)
    list_display = DjangoUserAdmin.list_display + ("role", "default_terminal")
    list_filter = DjangoUserAdmin.list_filter + ("role",)
