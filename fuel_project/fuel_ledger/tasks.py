import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_all_ledgers():
    """
    Repair job: re-derive total_lts/balance on every live fuel record.
    Returns how many records were out of sync.
    """
    # import lazily to avoid circular imports at module import time
    from .models import FuelRecord
    from .services.ledger import recompute_record

    fixed = 0
    for record_id in list(FuelRecord.objects.values_list("pk", flat=True)):
        if recompute_record(record_id):
            fixed += 1
    logger.info("recompute_all_ledgers: %d records corrected", fixed)
    return fixed
