import uuid

import django.core.serializers.json
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("actor_id", models.BigIntegerField(blank=True, db_index=True, null=True)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("view", "View"),
                            ("create", "Create"),
                            ("update", "Update"),
                            ("review", "Review"),
                        ],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                (
                    "entity_type",
                    models.CharField(
                        choices=[
                            ("encounter", "Encounter"),
                            ("progress_note", "Progress note"),
                            ("investigation_order", "Investigation order"),
                            ("investigation_result", "Investigation result"),
                            ("audit_event", "Audit event"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("entity_id", models.CharField(db_index=True, max_length=64)),
                (
                    "source",
                    models.CharField(
                        choices=[("api", "API"), ("system", "System"), ("integration", "Integration")],
                        default="api",
                        max_length=16,
                    ),
                ),
                ("occurred_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "metadata",
                    models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
            ],
            options={
                "db_table": "audit_audit_event",
                "ordering": ["-occurred_at"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
                    models.Index(fields=["actor_id", "occurred_at"], name="audit_actor_time_idx"),
                ],
            },
        ),
    ]
