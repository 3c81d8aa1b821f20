from django.urls import path
from . import views

app_name = 'billing'

urlpatterns = [
    path('invoices/', views.invoice_collection_view, name='invoice_list'),
    path('invoices/preview/', views.invoice_preview_view, name='invoice_preview'),
    path('invoices/<int:invoice_id>/', views.invoice_detail_view, name='invoice_detail'),
]
