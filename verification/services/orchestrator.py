import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from django.db import transaction
from django.utils import timezone

from accounts.actors import SYSTEM_ACTOR
from vendors.models import (
    DocumentHistory, HistoryAction, UploadedDocument,
    VerificationMethod, VerificationStatus,
)
from .content_verifier import ContentVerificationEngine
from .layout_comparator import LayoutComparator, skipped_comparison
from .registry_verifier import RegistryVerificationService
from .risk_scorer import RiskScorer
from .strategies import evaluate_keywords, get_strategy, resolve_reference_image
from .text_extractor import TextExtractionGateway
from .validators import DataValidator
from ..constants import RAW_TEXT_EXCERPT_CHARS
from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)

NO_LAYOUT_REASON = "Independently issued document; no standard layout to compare"


@dataclass
class ProcessingOutcome:
    status: str
    registry_task: Optional[Any] = None


def dispatch_registry_verification(document_id, actor):
    from ..tasks import verify_with_registry_async
    return verify_with_registry_async.delay(str(document_id), actor.as_dict())


class VerificationOrchestrator:

    def __init__(self, extractor=None, content_verifier=None, layout_comparator=None,
                 registry_service=None, scorer=None, dispatcher=None, reference_dir=None):
        self._extractor = extractor
        self._layout_comparator = layout_comparator
        self._registry_service = registry_service
        self.content_verifier = content_verifier or ContentVerificationEngine()
        self.scorer = scorer or RiskScorer()
        self.dispatcher = dispatcher or dispatch_registry_verification
        self.reference_dir = reference_dir

    # collaborators that touch OCR or HTTP are built on first use

    @property
    def extractor(self):
        if self._extractor is None:
            self._extractor = TextExtractionGateway()
        return self._extractor

    @property
    def layout_comparator(self):
        if self._layout_comparator is None:
            self._layout_comparator = LayoutComparator()
        return self._layout_comparator

    @property
    def registry_service(self):
        if self._registry_service is None:
            self._registry_service = RegistryVerificationService()
        return self._registry_service

    # ── local verification ─────────────────────────────────────────────────

    def process_document(self, document_id, actor=SYSTEM_ACTOR):
        document = (
            UploadedDocument.objects
            .select_related('compliance_document', 'vendor')
            .get(id=document_id)
        )
        document_type = document.compliance_document.name
        logger.info("process_document: starting for document %s (%s)", document.id, document_type)

        try:
            try:
                text = self.extractor.extract_text(document.file.name)
            except ExtractionError as e:
                logger.warning("process_document: extraction failed for %s - %s", document.id, e)
                document = self._transition(
                    document.id, VerificationStatus.PENDING_MANUAL_REVIEW,
                    action=HistoryAction.LOCAL_VERIFY_FAIL,
                    method=VerificationMethod.LOCAL,
                    actor=actor,
                    summary=str(e),
                    details=f"Processing failed: {e}",
                    details_update={'verification_method': VerificationMethod.LOCAL, 'error': str(e)},
                )
                return ProcessingOutcome(status=document.verification_status)

            base_details = {'raw_text': text[:RAW_TEXT_EXCERPT_CHARS]}
            strategy = get_strategy(document_type)

            # ── keyword pre-check ──────────────────────────────────────────
            keywords = evaluate_keywords(strategy.keyword_rules, text)
            if not keywords.passed:
                logger.info("process_document: keyword check failed for %s", document.id)
                document = self._reject_locally(
                    document, actor, keywords.reason, VerificationMethod.LOCAL,
                    dict(base_details, confidence_score=0.0, verification_method=VerificationMethod.LOCAL),
                )
                return ProcessingOutcome(status=document.verification_status)

            # ── AI content verification ────────────────────────────────────
            catalog = document.compliance_document
            expected = list(catalog.required_keywords or []) + list(catalog.optional_keywords or [])
            verdict = self.content_verifier.extract_document_info(
                text, document_type, document=document, expected_keywords=expected,
                identifier_format=catalog.validation_regex,
            )
            ai_details = dict(
                base_details,
                confidence_score=verdict.confidence,
                verification_method=VerificationMethod.AI,
            )

            if not verdict.is_valid:
                document = self._reject_locally(
                    document, actor, verdict.reason, VerificationMethod.AI, ai_details,
                    extracted=verdict.extracted_fields,
                )
                return ProcessingOutcome(status=document.verification_status)

            # ── layout comparison ──────────────────────────────────────────
            if strategy.has_layout:
                reference = resolve_reference_image(strategy, self.reference_dir)
                comparison = self.layout_comparator.compare_with_reference(document.file.name, reference)
            else:
                comparison = skipped_comparison(NO_LAYOUT_REASON)
            ai_details['layout_similarity'] = comparison.similarity

            if not comparison.skipped and comparison.similarity < strategy.layout_threshold:
                summary = (
                    f"{comparison.details}. Document layout does not match the expected format "
                    f"(similarity less than {round(strategy.layout_threshold * 100)}%)"
                )
                document = self._reject_locally(
                    document, actor, summary, VerificationMethod.AI, ai_details,
                    extracted=verdict.extracted_fields,
                )
                return ProcessingOutcome(status=document.verification_status)

            # ── passed local checks ────────────────────────────────────────
            summary = verdict.reason
            if not comparison.skipped:
                summary = f"{summary}. {comparison.details}"

            document = self._transition(
                document.id, VerificationStatus.PENDING_API_VALIDATION,
                action=HistoryAction.LOCAL_VERIFY,
                method=VerificationMethod.AI,
                actor=actor,
                summary=summary,
                details=f"Local verification result: {summary}",
                details_update=ai_details,
                updates={
                    'extracted_data': verdict.extracted_fields,
                    'expiry_date': DataValidator.expiry_date_from(verdict.extracted_fields),
                    'last_verified_at': timezone.now(),
                },
            )

        except Exception as e:
            logger.exception("process_document: unhandled error for document %s", document_id)
            document = self._fail_to_manual_review(
                document_id, actor, e,
                action=HistoryAction.LOCAL_VERIFY_FAIL,
                method=VerificationMethod.LOCAL,
                prefix="Processing failed",
            )
            return ProcessingOutcome(status=document.verification_status)

        try:
            registry_task = self.dispatcher(document.id, actor)
        except Exception as e:
            logger.exception("process_document: could not dispatch registry step for %s", document.id)
            document = self._fail_to_manual_review(
                document.id, actor, e,
                action=HistoryAction.API_VERIFY_FAIL,
                method=VerificationMethod.API,
                prefix="API verification failed",
            )
            return ProcessingOutcome(status=document.verification_status)

        logger.info("process_document: %s awaiting registry verification", document.id)
        return ProcessingOutcome(status=document.verification_status, registry_task=registry_task)

    def record_dispatch_failure(self, document_id, error, actor=SYSTEM_ACTOR):
        """Send a fresh upload whose pipeline task could not be queued to manual review."""
        logger.error("record_dispatch_failure: document %s not queued - %s", document_id, error)
        return self._fail_to_manual_review(
            document_id, actor, error,
            action=HistoryAction.LOCAL_VERIFY_FAIL,
            method=VerificationMethod.LOCAL,
            prefix="Verification could not be started",
            expected_status=VerificationStatus.PENDING,
        )

    # ── registry verification ──────────────────────────────────────────────

    def complete_registry_verification(self, document_id, actor=SYSTEM_ACTOR):
        document = (
            UploadedDocument.objects
            .select_related('compliance_document', 'vendor')
            .get(id=document_id)
        )

        if document.verification_status != VerificationStatus.PENDING_API_VALIDATION:
            logger.warning(
                "complete_registry_verification: document %s is %s, skipping",
                document.id, document.verification_status,
            )
            return ProcessingOutcome(status=document.verification_status)

        try:
            result = self.registry_service.verify(document)
        except Exception as e:
            logger.exception("complete_registry_verification: failed for document %s", document.id)
            document = self._fail_to_manual_review(
                document.id, actor, e,
                action=HistoryAction.API_VERIFY_FAIL,
                method=VerificationMethod.API,
                prefix="API verification failed",
                expected_status=VerificationStatus.PENDING_API_VALIDATION,
            )
            if document is None:
                return self._outcome(document_id)
            return ProcessingOutcome(status=document.verification_status)

        new_status = VerificationStatus.VERIFIED if result.is_valid else VerificationStatus.REJECTED
        document = self._transition(
            document.id, new_status,
            action=HistoryAction.API_VERIFY,
            method=VerificationMethod.API,
            actor=actor,
            summary=result.details or 'API verification processed.',
            details=json.dumps(result.as_dict()),
            updates={
                'api_verification_id': result.transaction_id or '',
                'last_verified_at': timezone.now(),
            },
            expected_status=VerificationStatus.PENDING_API_VALIDATION,
        )
        if document is None:
            return self._outcome(document_id)

        logger.info("complete_registry_verification: document %s -> %s", document.id, new_status)
        return ProcessingOutcome(status=document.verification_status)

    # ── manual review ──────────────────────────────────────────────────────

    def apply_manual_review(self, document_id, new_status, actor, note=''):
        if new_status not in VerificationStatus.values:
            raise ValueError(f"Unknown verification status: {new_status}")
        if actor.is_system:
            raise ValueError("Manual review needs a named reviewer, not the system actor")

        details_update = {'verification_method': VerificationMethod.MANUAL}
        if new_status == VerificationStatus.VERIFIED:
            details_update['confidence_score'] = 1.0

        summary = note or f"Status manually set to {new_status}"
        document = self._transition(
            document_id, new_status,
            action=HistoryAction.MANUAL_REVIEW,
            method=VerificationMethod.MANUAL,
            actor=actor,
            summary=summary,
            details=f"Manual review: {summary}",
            details_update=details_update,
            updates={'last_verified_at': timezone.now()},
        )
        logger.info(
            "apply_manual_review: document %s -> %s by %s",
            document.id, new_status, actor.user_id,
        )
        return document

    # ── expiry sweep ───────────────────────────────────────────────────────

    def expire_documents(self, today=None, actor=SYSTEM_ACTOR):
        today = today or timezone.localdate()
        due = UploadedDocument.objects.filter(
            verification_status=VerificationStatus.VERIFIED,
            expiry_date__lt=today,
        ).values_list('id', 'expiry_date')

        expired = 0
        for document_id, expiry_date in list(due):
            document = self._transition(
                document_id, VerificationStatus.EXPIRED,
                action=HistoryAction.EXPIRED,
                method=VerificationMethod.LOCAL,
                actor=actor,
                summary=f"Document expired on {expiry_date.isoformat()}",
                details=f"Expiry date {expiry_date.isoformat()} passed",
                expected_status=VerificationStatus.VERIFIED,
            )
            if document is not None:
                expired += 1

        logger.info("expire_documents: %d documents expired as of %s", expired, today)
        return expired

    # ── helpers ────────────────────────────────────────────────────────────

    def _reject_locally(self, document, actor, reason, method, details_update, extracted=None):
        updates = {'last_verified_at': timezone.now()}
        if extracted is not None:
            updates['extracted_data'] = extracted
        return self._transition(
            document.id, VerificationStatus.REJECTED,
            action=HistoryAction.LOCAL_VERIFY,
            method=method,
            actor=actor,
            summary=reason,
            details=f"Local verification result: {reason}",
            details_update=details_update,
            updates=updates,
        )

    def _fail_to_manual_review(self, document_id, actor, error, action, method, prefix, expected_status=None):
        message = str(error) or error.__class__.__name__
        return self._transition(
            document_id, VerificationStatus.PENDING_MANUAL_REVIEW,
            action=action,
            method=method,
            actor=actor,
            summary=message,
            details=f"{prefix}: {message}",
            details_update={'error': message},
            expected_status=expected_status,
        )

    def _outcome(self, document_id):
        status = (
            UploadedDocument.objects
            .filter(id=document_id)
            .values_list('verification_status', flat=True)
            .first()
        )
        return ProcessingOutcome(status=status)

    def _transition(self, document_id, new_status, action, method, actor, summary,
                    details='', details_update=None, updates=None, expected_status=None):
        """
        Apply one status change and its history row atomically, then rescore.

        With expected_status set, the status is re-read under the row lock and
        nothing is written if the document has moved on; None is returned then.
        """
        with transaction.atomic():
            document = UploadedDocument.objects.select_for_update().get(id=document_id)
            previous = document.verification_status

            if expected_status is not None and previous != expected_status:
                logger.warning(
                    "_transition: document %s is %s, expected %s; %s not applied",
                    document_id, previous, expected_status, action,
                )
                return None

            document.verification_status = new_status
            document.verification_summary = summary
            if details_update:
                merged = dict(document.verification_details or {})
                merged.update(details_update)
                document.verification_details = merged
            for field_name, value in (updates or {}).items():
                setattr(document, field_name, value)
            document.save()

            DocumentHistory.objects.create(
                document=document,
                action=action,
                details=details or summary,
                changed_by=actor.user_id,
                actor_role=actor.role or '',
                previous_status=previous,
                new_status=new_status,
                verification_method=method,
            )

        logger.info(
            "_transition: document=%s %s -> %s (%s)",
            document.id, previous, new_status, action,
        )
        self._rescore(document)
        document.refresh_from_db()
        return document

    def _rescore(self, document):
        try:
            self.scorer.calculate_document_score(document.id)
            self.scorer.calculate_vendor_score(document.vendor_id)
        except Exception as e:
            # scoring failing should not undo the transition
            logger.warning("_rescore: non-fatal error for document %s - %s", document.id, e)
