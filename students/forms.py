# students/forms.py
"""
Enrollment form: student profile plus the subjects (with discounts) and
add-ons billed on the first invoice.
"""
from django import forms

from billing.forms import parse_add_on_ids, parse_subject_choices, validate_subject_discounts
from shared.constants import CLASS_LEVELS

from .models import Student


class StudentEnrollmentForm(forms.ModelForm):
    """New student enrollment, as submitted by the enrollment wizard."""
    subjects = forms.JSONField(required=False)
    add_ons = forms.JSONField(required=False)
    due_date = forms.DateField(required=False, input_formats=['%Y-%m-%d'])

    class Meta:
        model = Student
        fields = [
            'first_name', 'last_name', 'date_of_birth', 'gender', 'class_level',
            'student_phone', 'student_email', 'home_address',
            'parent_name', 'parent_phone', 'parent_email',
        ]

    def clean_subjects(self):
        return parse_subject_choices(self.cleaned_data.get('subjects'))

    def clean_add_ons(self):
        return parse_add_on_ids(self.cleaned_data.get('add_ons'))

    def clean(self):
        cleaned_data = super().clean()
        subjects = cleaned_data.get('subjects')

        if subjects is not None:
            if not subjects:
                self.add_error('subjects', "Select at least one subject.")
            else:
                try:
                    catalog = validate_subject_discounts(subjects)
                except forms.ValidationError as e:
                    self.add_error('subjects', e)
                else:
                    self._check_class_level(catalog, cleaned_data.get('class_level'))

        return cleaned_data

    def _check_class_level(self, catalog, class_level):
        if not class_level:
            return
        level_name = dict(CLASS_LEVELS).get(class_level, class_level)
        for subject in catalog.values():
            if not subject.is_offered_at(class_level):
                self.add_error('subjects', f"{subject.name} is not offered at {level_name}.")

    def student_data(self):
        """Cleaned model fields, ready for EnrollmentService.enroll_student."""
        return {name: self.cleaned_data.get(name) for name in self.Meta.fields}

    def error_dict(self):
        return {
            field: [error['message'] for error in errors]
            for field, errors in self.errors.get_json_data().items()
        }
