from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'is_premium', 'is_staff', 'created_at']
    list_filter = ['is_premium', 'is_staff', 'created_at']
    search_fields = ['email', 'name']
    ordering = ['-created_at']
    readonly_fields = ['password', 'last_login', 'created_at']
