# billing/admin.py
from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse

from shared.constants import StatusChoices
from shared.utils.money import format_pkr

from .models import Invoice, InvoiceItem


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    fields = [
        'item_type', 'description', 'quantity', 'unit_price',
        'discount_type', 'discount_value', 'discount_amount', 'discount_reason', 'total',
    ]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = [
        'invoice_number', 'student_link', 'subtotal_formatted', 'discount_formatted',
        'total_formatted', 'status_badge', 'due_date', 'is_overdue_badge',
    ]
    list_filter = ['status', 'issue_date', 'created_at']
    search_fields = ['invoice_number', 'student__first_name', 'student__last_name', 'student__roll_number']
    readonly_fields = ['invoice_number', 'subtotal', 'discount_amount', 'total', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    raw_id_fields = ['student']
    inlines = [InvoiceItemInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('invoice_number', 'student', 'issue_date', 'due_date', 'notes')
        }),
        ('Amount Details', {
            'fields': ('subtotal', 'discount_amount', 'total', 'amount_paid')
        }),
        ('Payment Status', {
            'fields': ('status',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at')
        }),
    )

    def subtotal_formatted(self, obj):
        return format_pkr(obj.subtotal)
    subtotal_formatted.short_description = 'Subtotal'

    def discount_formatted(self, obj):
        return format_pkr(obj.discount_amount)
    discount_formatted.short_description = 'Discount'

    def total_formatted(self, obj):
        return format_pkr(obj.total)
    total_formatted.short_description = 'Total'

    def status_badge(self, obj):
        status_colors = {
            StatusChoices.DRAFT: 'gray',
            StatusChoices.SENT: 'blue',
            StatusChoices.PAID: 'green',
            StatusChoices.OVERDUE: 'orange',
        }

        color = status_colors.get(obj.status, 'gray')
        return format_html(
            '<span style="background: {}; color: white; padding: 2px 8px; border-radius: 10px;">{}</span>',
            color, obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def is_overdue_badge(self, obj):
        if obj.is_overdue:
            return format_html(
                '<span style="background: red; color: white; padding: 2px 8px; border-radius: 10px;">{}</span>',
                'OVERDUE'
            )
        return ''
    is_overdue_badge.short_description = 'Overdue'

    def student_link(self, obj):
        url = reverse('admin:students_student_change', args=[obj.student.id])
        return format_html('<a href="{}">{}</a>', url, obj.student.full_name)
    student_link.short_description = 'Student'

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status == StatusChoices.PAID:
            return False
        return super().has_delete_permission(request, obj)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('student')
