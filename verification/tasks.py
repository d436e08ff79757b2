from celery import shared_task
from django.apps import apps
import logging

from accounts.actors import Actor, SYSTEM_ACTOR

logger = logging.getLogger(__name__)


def _actor(data):
    return Actor.from_dict(data) if data else SYSTEM_ACTOR


@shared_task
def process_document_async(document_id, actor=None):
    UploadedDocument = apps.get_model('vendors', 'UploadedDocument')

    try:
        logger.info("process_document_async: starting for document %s", document_id)

        from .services.orchestrator import VerificationOrchestrator

        outcome = VerificationOrchestrator().process_document(document_id, _actor(actor))

        return {
            "success": True,
            "document_id": str(document_id),
            "status": outcome.status,
            "registry_task_id": getattr(outcome.registry_task, 'id', None),
        }

    except UploadedDocument.DoesNotExist:
        logger.error("process_document_async: document %s not found", document_id)
        return {
            "success": False,
            "error": "Document not found",
            "document_id": str(document_id),
        }

    except Exception as e:
        logger.exception("process_document_async: failed for document %s", document_id)
        return {
            "success": False,
            "error": str(e),
            "document_id": str(document_id),
        }


@shared_task
def verify_with_registry_async(document_id, actor=None):
    UploadedDocument = apps.get_model('vendors', 'UploadedDocument')

    try:
        logger.info("verify_with_registry_async: starting for document %s", document_id)

        from .services.orchestrator import VerificationOrchestrator

        outcome = VerificationOrchestrator().complete_registry_verification(
            document_id, _actor(actor),
        )

        return {
            "success": True,
            "document_id": str(document_id),
            "status": outcome.status,
        }

    except UploadedDocument.DoesNotExist:
        logger.error("verify_with_registry_async: document %s not found", document_id)
        return {
            "success": False,
            "error": "Document not found",
            "document_id": str(document_id),
        }

    except Exception as e:
        logger.exception("verify_with_registry_async: failed for document %s", document_id)
        return {
            "success": False,
            "error": str(e),
            "document_id": str(document_id),
        }


@shared_task
def expire_documents_task():
    try:
        from .services.orchestrator import VerificationOrchestrator

        expired = VerificationOrchestrator().expire_documents()
        return {"success": True, "expired": expired}

    except Exception as e:
        logger.exception("expire_documents_task: sweep failed")
        return {"success": False, "error": str(e)}


@shared_task
def recalculate_vendor_score_task(vendor_id):
    try:
        from .services.risk_scorer import RiskScorer

        vendor = RiskScorer().calculate_vendor_score(vendor_id)
        if vendor is None:
            return {"success": False, "error": "Vendor not found", "vendor_id": str(vendor_id)}

        return {
            "success": True,
            "vendor_id": str(vendor_id),
            "score": vendor.overall_compliance_score,
            "status": vendor.compliance_status,
        }

    except Exception as e:
        logger.exception("recalculate_vendor_score_task: failed for vendor %s", vendor_id)
        return {"success": False, "error": str(e), "vendor_id": str(vendor_id)}
