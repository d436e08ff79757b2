import logging

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from vendors.models import (
    ComplianceDocument, ComplianceStatus, DocumentHistory, UploadedDocument,
    Vendor, VerificationStatus,
)
from ..constants import (
    STATUS_SCORES, HISTORY_MULTIPLIERS, HISTORY_MULTIPLIER_FLOOR,
    PILLAR_WEIGHTS, DEFAULT_PILLAR_WEIGHT,
    GREEN_THRESHOLD, AMBER_THRESHOLD, MAX_SCORE,
)

logger = logging.getLogger(__name__)


def history_multiplier(rejection_count):
    return HISTORY_MULTIPLIERS.get(rejection_count, HISTORY_MULTIPLIER_FLOOR)


def document_score(status, confidence=None, rejection_count=0):
    if status == VerificationStatus.VERIFIED:
        base = STATUS_SCORES['VERIFIED'] * (1.0 if confidence is None else float(confidence))
    else:
        base = STATUS_SCORES.get(status, 0.0)
    return min(base * history_multiplier(rejection_count), MAX_SCORE)


def aggregate_score(weighted_scores):
    """weighted_scores: iterable of (score, pillar) pairs, one per catalog entry."""
    total = 0.0
    total_weight = 0.0
    for score, pillar in weighted_scores:
        weight = PILLAR_WEIGHTS.get(pillar, DEFAULT_PILLAR_WEIGHT)
        total += score * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0
    return min(total / total_weight, MAX_SCORE)


def compliance_status_for(score):
    if score >= GREEN_THRESHOLD:
        return ComplianceStatus.GREEN
    if score >= AMBER_THRESHOLD:
        return ComplianceStatus.AMBER
    return ComplianceStatus.RED


def rejection_count(document_id):
    return DocumentHistory.objects.filter(
        document_id=document_id,
        new_status=VerificationStatus.REJECTED,
    ).count()


class RiskScorer:

    def calculate_document_score(self, document_id):
        try:
            document = UploadedDocument.objects.get(id=document_id)
        except UploadedDocument.DoesNotExist:
            logger.error("calculate_document_score: document %s not found", document_id)
            return None

        rejections = rejection_count(document.id)
        score = document_score(
            document.verification_status,
            document.confidence_score,
            rejections,
        )

        UploadedDocument.objects.filter(id=document.id).update(risk_score=score)
        logger.info(
            "calculate_document_score: document=%s status=%s rejections=%d score=%.2f",
            document.id, document.verification_status, rejections, score,
        )
        return score

    def calculate_vendor_score(self, vendor_id):
        with transaction.atomic():
            try:
                vendor = Vendor.objects.select_for_update().get(id=vendor_id)
            except Vendor.DoesNotExist:
                logger.error("calculate_vendor_score: vendor %s not found", vendor_id)
                return None

            catalog = list(ComplianceDocument.objects.all())
            if not catalog:
                return self._save(vendor, 0.0, ComplianceStatus.RED)

            latest = {}
            uploads = (
                UploadedDocument.objects
                .filter(vendor=vendor)
                .annotate(rejections=Count(
                    'history', filter=Q(history__new_status=VerificationStatus.REJECTED)
                ))
                .order_by('-uploaded_at')
            )
            for upload in uploads:
                latest.setdefault(upload.compliance_document_id, upload)

            scored = []
            for entry in catalog:
                upload = latest.get(entry.id)
                if upload is None:
                    score = STATUS_SCORES['MISSING']
                elif upload.risk_score is None:
                    score = document_score(
                        upload.verification_status, upload.confidence_score, upload.rejections,
                    )
                    UploadedDocument.objects.filter(id=upload.id).update(risk_score=score)
                else:
                    score = upload.risk_score
                scored.append((score, entry.pillar))

            overall = aggregate_score(scored)
            return self._save(vendor, overall, compliance_status_for(overall))

    def _save(self, vendor, score, status):
        vendor.overall_compliance_score = score
        vendor.compliance_status = status
        vendor.last_scored_at = timezone.now()
        vendor.save(update_fields=['overall_compliance_score', 'compliance_status', 'last_scored_at'])

        logger.info("calculate_vendor_score: vendor=%s score=%.2f status=%s", vendor.id, score, status)
        return vendor
