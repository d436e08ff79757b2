import uuid
from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator


class Pillar(models.TextChoices):
    FACTORY_REGISTRATION_SAFETY = "FACTORY_REGISTRATION_SAFETY", "Factory Registration & Safety"
    WAGES_OVERTIME = "WAGES_OVERTIME", "Wages & Overtime"
    ESI_PF_COVERAGE = "ESI_PF_COVERAGE", "ESI / PF Coverage"
    CHILD_LABOR_AGE_VERIFICATION = "CHILD_LABOR_AGE_VERIFICATION", "Child Labor & Age Verification"
    ENVIRONMENTAL = "ENVIRONMENTAL", "Environmental"


class VerificationStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PENDING_API_VALIDATION = "PENDING_API_VALIDATION", "Pending API Validation"
    PENDING_MANUAL_REVIEW = "PENDING_MANUAL_REVIEW", "Pending Manual Review"
    VERIFIED = "VERIFIED", "Verified"
    REJECTED = "REJECTED", "Rejected"
    EXPIRED = "EXPIRED", "Expired"


class ComplianceStatus(models.TextChoices):
    GREEN = "GREEN", "Green"
    AMBER = "AMBER", "Amber"
    RED = "RED", "Red"


class VerificationMethod(models.TextChoices):
    LOCAL = "LOCAL", "Local"
    AI = "AI", "AI"
    API = "API", "API"
    MANUAL = "MANUAL", "Manual"


class HistoryAction(models.TextChoices):
    LOCAL_VERIFY = "LOCAL_VERIFY", "Local verification"
    LOCAL_VERIFY_FAIL = "LOCAL_VERIFY_FAIL", "Local verification failed"
    API_VERIFY = "API_VERIFY", "Registry verification"
    API_VERIFY_FAIL = "API_VERIFY_FAIL", "Registry verification failed"
    MANUAL_REVIEW = "MANUAL_REVIEW", "Manual review"
    EXPIRED = "EXPIRED", "Expired"


class ComplianceDocument(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, unique=True, db_index=True)
    pillar = models.CharField(max_length=40, choices=Pillar.choices, db_index=True)
    description = models.TextField(blank=True)
    issuing_authority = models.CharField(max_length=255, blank=True)
    required_keywords = models.JSONField(default=list, blank=True)
    optional_keywords = models.JSONField(default=list, blank=True)
    validation_regex = models.CharField(max_length=500, blank=True)

    class Meta:
        db_table = "compliance_documents"
        ordering = ["name"]

    def save(self, *args, **kwargs):
        if self.name:
            self.name = self.name.strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class Vendor(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    overall_compliance_score = models.FloatField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    compliance_status = models.CharField(
        max_length=10,
        choices=ComplianceStatus.choices,
        default=ComplianceStatus.RED,
        db_index=True,
    )
    last_scored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "vendors"
        ordering = ["name"]

    def save(self, *args, **kwargs):
        if self.name:
            self.name = self.name.strip()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name


class UploadedDocument(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vendor = models.ForeignKey(
        Vendor,
        on_delete=models.CASCADE,
        related_name="documents",
    )
    compliance_document = models.ForeignKey(
        ComplianceDocument,
        on_delete=models.PROTECT,
        related_name="uploads",
    )
    file = models.FileField(upload_to="vendor_documents/%Y/%m/")
    original_filename = models.CharField(max_length=255, blank=True)
    verification_status = models.CharField(
        max_length=30,
        choices=VerificationStatus.choices,
        default=VerificationStatus.PENDING,
        db_index=True,
    )
    verification_summary = models.TextField(blank=True)
    extracted_data = models.JSONField(default=dict, blank=True)
    verification_details = models.JSONField(default=dict, blank=True)
    risk_score = models.FloatField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    api_verification_id = models.CharField(max_length=255, blank=True)
    last_verified_at = models.DateTimeField(null=True, blank=True)
    uploaded_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "uploaded_documents"
        ordering = ["-uploaded_at"]
        indexes = [
            models.Index(fields=["vendor", "verification_status"], name="uploaded_do_vendor__6a1f2e_idx"),
            models.Index(fields=["expiry_date"], name="uploaded_do_expiry__3c9d41_idx"),
        ]

    @property
    def document_type(self):
        return self.compliance_document.name

    @property
    def confidence_score(self):
        details = self.verification_details or {}
        return details.get("confidence_score")

    def __str__(self):
        return f"{self.vendor} - {self.compliance_document}"


class DocumentHistory(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    document = models.ForeignKey(
        UploadedDocument,
        on_delete=models.CASCADE,
        related_name="history",
    )
    action = models.CharField(max_length=30, choices=HistoryAction.choices)
    details = models.TextField(blank=True)
    changed_by = models.CharField(max_length=64, default="SYSTEM")
    actor_role = models.CharField(max_length=30, blank=True)
    previous_status = models.CharField(max_length=30, choices=VerificationStatus.choices)
    new_status = models.CharField(max_length=30, choices=VerificationStatus.choices, db_index=True)
    verification_method = models.CharField(max_length=10, choices=VerificationMethod.choices)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "document_history"
        ordering = ["timestamp"]
        verbose_name_plural = "document history"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Document history entries are append-only")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Document history entries cannot be deleted")

    def __str__(self):
        return f"{self.action}: {self.previous_status} -> {self.new_status}"
