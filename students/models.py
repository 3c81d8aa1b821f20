# students/models.py
"""
Students, the subject / add-on catalog, and subject enrollments.
Enrollments carry the discount agreed for a subject so later invoices can
start from it.
"""
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from shared.constants import CLASS_LEVELS, DiscountTypes

logger = logging.getLogger(__name__)


class Student(models.Model):
    """A student enrolled (or being enrolled) at the academy."""
    GENDER_CHOICES = (
        ('male', 'Male'),
        ('female', 'Female'),
    )

    roll_number = models.CharField(max_length=30, unique=True, db_index=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    class_level = models.CharField(max_length=20, choices=CLASS_LEVELS)

    # Contact
    student_phone = models.CharField(max_length=20, blank=True)
    student_email = models.EmailField(blank=True)
    home_address = models.TextField(blank=True)
    parent_name = models.CharField(max_length=150, blank=True)
    parent_phone = models.CharField(max_length=20, blank=True)
    parent_email = models.EmailField(blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students_student'
        ordering = ['first_name', 'last_name']
        indexes = [
            models.Index(fields=['class_level', 'is_active']),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.roll_number})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def save(self, *args, **kwargs):
        if not self.roll_number:
            self.roll_number = self.generate_roll_number()
        super().save(*args, **kwargs)

    @classmethod
    def generate_roll_number(cls):
        """Sequential roll number per year: STU-2025-0001."""
        prefix = f"STU-{timezone.now().year}-"
        last_sequence = 0
        for number in cls.objects.filter(roll_number__startswith=prefix).values_list('roll_number', flat=True):
            try:
                last_sequence = max(last_sequence, int(number[len(prefix):]))
            except ValueError:
                logger.warning(f"Unexpected roll number format: {number}")
        return f"{prefix}{last_sequence + 1:04d}"


class Subject(models.Model):
    """A billable subject in the catalog."""
    name = models.CharField(max_length=100)
    code = models.CharField(max_length=20, unique=True)
    class_levels = models.JSONField(default=list, help_text="Class levels this subject is offered at")
    base_fee = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    description = models.TextField(blank=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'students_subject'
        ordering = ['order', 'name']
        indexes = [
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"

    def clean(self):
        if self.base_fee is not None and self.base_fee < 0:
            raise ValidationError({'base_fee': 'Base fee cannot be negative.'})

    def is_offered_at(self, class_level):
        return not self.class_levels or class_level in self.class_levels


class AddOn(models.Model):
    """Optional extra charged once per invoice (registration, resources...)."""
    CATEGORY_CHOICES = (
        ('registration', 'Registration'),
        ('resources', 'Resources'),
        ('online', 'Online'),
        ('other', 'Other'),
    )

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students_addon'
        ordering = ['order', 'name']
        verbose_name = 'Add-on'
        verbose_name_plural = 'Add-ons'

    def __str__(self):
        return f"{self.name} - Rs. {self.price:,.2f}"

    def clean(self):
        if self.price is not None and self.price < 0:
            raise ValidationError({'price': 'Price cannot be negative.'})


class Enrollment(models.Model):
    """A student's enrollment in one subject, with any agreed discount."""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='enrollments')
    subject = models.ForeignKey(Subject, on_delete=models.PROTECT, related_name='enrollments')
    enrolled_at = models.DateTimeField(default=timezone.now)
    is_active = models.BooleanField(default=True)

    discount_type = models.CharField(max_length=20, choices=DiscountTypes.choices, default=DiscountTypes.NONE)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = 'students_enrollment'
        ordering = ['subject__order', 'subject__name']
        indexes = [
            models.Index(fields=['student', 'is_active']),
        ]

    def __str__(self):
        return f"{self.student.full_name} - {self.subject.name}"

    def clean(self):
        if self.discount_value is None or self.discount_value < 0:
            raise ValidationError({'discount_value': 'Discount cannot be negative.'})

        if self.discount_type == DiscountTypes.PERCENTAGE and self.discount_value > 100:
            raise ValidationError({'discount_value': 'Percentage discount cannot exceed 100.'})

        if self.discount_type == DiscountTypes.NONE:
            self.discount_value = Decimal('0.00')
            self.discount_reason = ''
