# config/urls.py

from django.contrib import admin
from django.urls import path, include

from . import views

# -------------------------------------------------------------------
# URL CONFIGURATION
# -------------------------------------------------------------------

urlpatterns = [
    # ----------------------------------------------------------------
    # Health & diagnostics
    # ----------------------------------------------------------------
    path("health/", views.health_check_view, name="health_check"),

    # ----------------------------------------------------------------
    # Application namespaces
    # ----------------------------------------------------------------
    path("students/", include(("students.urls", "students"), namespace="students")),
    path("billing/", include(("billing.urls", "billing"), namespace="billing")),

    # ----------------------------------------------------------------
    # Admin
    # ----------------------------------------------------------------
    path("admin/", admin.site.urls),
]

# -------------------------------------------------------------------
# Error handlers
# -------------------------------------------------------------------

handler400 = "config.views.handler400"
handler403 = "config.views.handler403"
handler404 = "config.views.handler404"
handler500 = "config.views.handler500"
