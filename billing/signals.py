# billing/signals.py
import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from shared.constants import StatusChoices
from .models import Invoice

logger = logging.getLogger(__name__)


# ============================================================
# INVOICE STATUS CHANGE (pre_save sees the stored status)
# ============================================================

@receiver(pre_save, sender=Invoice)
def handle_invoice_status_change(sender, instance, **kwargs):
    if not instance.pk:
        return

    old_status = sender.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    if old_status is None or old_status == instance.status:
        return

    logger.info(
        f"Invoice {instance.invoice_number} status changed: "
        f"{old_status} -> {instance.status}"
    )

    if instance.status == StatusChoices.OVERDUE:
        logger.info(f"Invoice {instance.invoice_number} is now overdue")


# ============================================================
# INVOICE CREATION
# ============================================================

@receiver(post_save, sender=Invoice)
def log_invoice_created(sender, instance, created, **kwargs):
    if created:
        logger.info(
            f"Invoice {instance.invoice_number} raised for student {instance.student_id} "
            f"({instance.status}), due {instance.due_date}"
        )
