from django.contrib import admin
from .models import EmailTemplate, EmailLog


@admin.register(EmailTemplate)
class EmailTemplateAdmin(admin.ModelAdmin):
    list_display = ('name', 'template_type', 'is_active', 'updated_at')
    list_filter = ('template_type', 'is_active')
    search_fields = ('name', 'subject')


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'template_type', 'status', 'sent_at', 'created_at')
    list_filter = ('status', 'template_type')
    search_fields = ('recipient', 'subject')
    readonly_fields = ('context_data', 'error_message', 'created_at', 'updated_at')
