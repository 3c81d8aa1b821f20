# students/admin.py
from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from shared.constants import DiscountTypes
from shared.utils.money import format_pkr

from .models import AddOn, Enrollment, Student, Subject


# ===== ENROLLMENT INLINE =====
class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    fields = ['subject', 'is_active', 'discount_type', 'discount_value', 'discount_reason', 'enrolled_at']
    readonly_fields = ['enrolled_at']
    raw_id_fields = ['subject']


# ===== STUDENT ADMIN =====
@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = [
        'roll_number',
        'full_name_display',
        'class_level',
        'parent_name',
        'invoices_link',
        'is_active',
    ]

    list_filter = ['class_level', 'gender', 'is_active']

    search_fields = [
        'roll_number',
        'first_name',
        'last_name',
        'parent_name',
        'parent_phone',
        'parent_email',
    ]

    readonly_fields = ['roll_number', 'created_at', 'updated_at']

    fieldsets = (
        ('Personal Information', {
            'fields': ('roll_number', 'first_name', 'last_name', 'gender', 'date_of_birth', 'class_level')
        }),
        ('Contact', {
            'fields': ('student_phone', 'student_email', 'home_address')
        }),
        ('Parent/Guardian', {
            'fields': ('parent_name', 'parent_phone', 'parent_email')
        }),
        ('Status', {
            'fields': ('is_active', 'created_at', 'updated_at')
        }),
    )

    inlines = [EnrollmentInline]

    def full_name_display(self, obj):
        return obj.full_name
    full_name_display.short_description = 'Name'

    def invoices_link(self, obj):
        url = reverse('admin:billing_invoice_changelist') + f'?student__id__exact={obj.id}'
        return format_html('<a href="{}">{} invoice(s)</a>', url, obj.invoices.count())
    invoices_link.short_description = 'Invoices'


# ===== CATALOG ADMIN =====
@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'class_levels', 'fee_display', 'order', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'code']
    list_editable = ['order', 'is_active']

    def fee_display(self, obj):
        return format_pkr(obj.base_fee)
    fee_display.short_description = 'Base Fee'


@admin.register(AddOn)
class AddOnAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'price_display', 'order', 'is_active']
    list_filter = ['category', 'is_active']
    search_fields = ['name', 'description']
    list_editable = ['order', 'is_active']

    def price_display(self, obj):
        return format_pkr(obj.price)
    price_display.short_description = 'Price'


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ['student', 'subject', 'discount_display', 'is_active', 'enrolled_at']
    list_filter = ['is_active', 'discount_type', 'subject']
    search_fields = ['student__first_name', 'student__last_name', 'student__roll_number', 'subject__name']
    raw_id_fields = ['student', 'subject']

    def discount_display(self, obj):
        if obj.discount_type == DiscountTypes.PERCENTAGE:
            return f"{obj.discount_value}%"
        if obj.discount_type == DiscountTypes.FIXED:
            return format_pkr(obj.discount_value)
        return '-'
    discount_display.short_description = 'Discount'
