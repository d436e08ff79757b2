import django.db.models.deletion
import uuid
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("vendors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AIAuditLog",
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
                ("document_type", models.CharField(blank=True, max_length=255)),
                ("prompt_sent", models.TextField()),
                ("raw_response", models.TextField(blank=True)),
                ("parsed_response", models.JSONField(blank=True, default=dict)),
                (
                    "model_used",
                    models.CharField(default="models/gemini-2.5-flash", max_length=100),
                ),
                ("success", models.BooleanField(default=True)),
                ("error_message", models.TextField(blank=True)),
                ("response_time_ms", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "document",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="audit_logs",
                        to="vendors.uploadeddocument",
                    ),
                ),
            ],
            options={
                "db_table": "ai_audit_logs",
                "ordering": ["-created_at"],
            },
        ),
    ]
