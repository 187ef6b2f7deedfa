# console_core/audit/api/serializers.py
from rest_framework import serializers

from console_core.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    # API name "timestamp" maps to occurred_at
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)
    actor_user_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "organization_id",
            "entity_type",
            "entity_id",
            "event_code",
            "actor_user_id",
            "timestamp",
            "metadata",
        ]
        read_only_fields = fields
