import django.core.validators
import django.db.models.deletion
import uuid
from django.db import migrations, models


VERIFICATION_STATUS_CHOICES = [
    ("PENDING", "Pending"),
    ("PENDING_API_VALIDATION", "Pending API Validation"),
    ("PENDING_MANUAL_REVIEW", "Pending Manual Review"),
    ("VERIFIED", "Verified"),
    ("REJECTED", "Rejected"),
    ("EXPIRED", "Expired"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ComplianceDocument",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(db_index=True, max_length=255, unique=True)),
                (
                    "pillar",
                    models.CharField(
                        choices=[
                            ("FACTORY_REGISTRATION_SAFETY", "Factory Registration & Safety"),
                            ("WAGES_OVERTIME", "Wages & Overtime"),
                            ("ESI_PF_COVERAGE", "ESI / PF Coverage"),
                            ("CHILD_LABOR_AGE_VERIFICATION", "Child Labor & Age Verification"),
                            ("ENVIRONMENTAL", "Environmental"),
                        ],
                        db_index=True,
                        max_length=40,
                    ),
                ),
                ("description", models.TextField(blank=True)),
                ("issuing_authority", models.CharField(blank=True, max_length=255)),
                ("required_keywords", models.JSONField(blank=True, default=list)),
                ("optional_keywords", models.JSONField(blank=True, default=list)),
                ("validation_regex", models.CharField(blank=True, max_length=500)),
            ],
            options={
                "db_table": "compliance_documents",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Vendor",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                (
                    "overall_compliance_score",
                    models.FloatField(
                        default=0,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                (
                    "compliance_status",
                    models.CharField(
                        choices=[("GREEN", "Green"), ("AMBER", "Amber"), ("RED", "Red")],
                        db_index=True,
                        default="RED",
                        max_length=10,
                    ),
                ),
                ("last_scored_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "db_table": "vendors",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="UploadedDocument",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("file", models.FileField(upload_to="vendor_documents/%Y/%m/")),
                ("original_filename", models.CharField(blank=True, max_length=255)),
                (
                    "verification_status",
                    models.CharField(
                        choices=VERIFICATION_STATUS_CHOICES,
                        db_index=True,
                        default="PENDING",
                        max_length=30,
                    ),
                ),
                ("verification_summary", models.TextField(blank=True)),
                ("extracted_data", models.JSONField(blank=True, default=dict)),
                ("verification_details", models.JSONField(blank=True, default=dict)),
                ("risk_score", models.FloatField(blank=True, null=True)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("api_verification_id", models.CharField(blank=True, max_length=255)),
                ("last_verified_at", models.DateTimeField(blank=True, null=True)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "compliance_document",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="uploads",
                        to="vendors.compliancedocument",
                    ),
                ),
                (
                    "vendor",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="documents",
                        to="vendors.vendor",
                    ),
                ),
            ],
            options={
                "db_table": "uploaded_documents",
                "ordering": ["-uploaded_at"],
                "indexes": [
                    models.Index(
                        fields=["vendor", "verification_status"],
                        name="uploaded_do_vendor__6a1f2e_idx",
                    ),
                    models.Index(fields=["expiry_date"], name="uploaded_do_expiry__3c9d41_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DocumentHistory",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("LOCAL_VERIFY", "Local verification"),
                            ("LOCAL_VERIFY_FAIL", "Local verification failed"),
                            ("API_VERIFY", "Registry verification"),
                            ("API_VERIFY_FAIL", "Registry verification failed"),
                            ("MANUAL_REVIEW", "Manual review"),
                            ("EXPIRED", "Expired"),
                        ],
                        max_length=30,
                    ),
                ),
                ("details", models.TextField(blank=True)),
                ("changed_by", models.CharField(default="SYSTEM", max_length=64)),
                ("actor_role", models.CharField(blank=True, max_length=30)),
                (
                    "previous_status",
                    models.CharField(choices=VERIFICATION_STATUS_CHOICES, max_length=30),
                ),
                (
                    "new_status",
                    models.CharField(
                        choices=VERIFICATION_STATUS_CHOICES, db_index=True, max_length=30
                    ),
                ),
                (
                    "verification_method",
                    models.CharField(
                        choices=[
                            ("LOCAL", "Local"),
                            ("AI", "AI"),
                            ("API", "API"),
                            ("MANUAL", "Manual"),
                        ],
                        max_length=10,
                    ),
                ),
                ("timestamp", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "document",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="vendors.uploadeddocument",
                    ),
                ),
            ],
            options={
                "db_table": "document_history",
                "ordering": ["timestamp"],
                "verbose_name_plural": "document history",
            },
        ),
    ]
