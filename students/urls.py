# students/urls.py
from django.urls import path
from . import views

app_name = 'students'

urlpatterns = [
    # ============ CATALOG ============
    path('subjects/', views.subject_list_view, name='subject_list'),
    path('add-ons/', views.add_on_list_view, name='add_on_list'),

    # ============ ENROLLMENT ============
    path('enroll/', views.student_enroll_view, name='student_enroll'),
    path('<int:student_id>/enrollments/', views.student_enrollments_view, name='student_enrollments'),
]
