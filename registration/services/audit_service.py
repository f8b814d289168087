import logging

from django.db.models import Q

from registration.models import AuditLogEntry

logger = logging.getLogger(__name__)


class AuditService:
    """Service class for the append-only audit log."""

    def append(
        self,
        actor_id: str,
        actor_name: str,
        action: str,
        resource_type: str,
        resource_id,
        details: dict = None,
        actor_role: str = AuditLogEntry.ROLE_ADMIN,
    ) -> AuditLogEntry:
        """
        Record one administrative action.

        Callers run this inside the transaction of the primary mutation so the
        entry commits (or rolls back) together with the change it describes.

        Returns:
            AuditLogEntry: The persisted entry with its id and timestamp
        """
        entry = AuditLogEntry.objects.create(
            actor_id=actor_id,
            actor_name=actor_name,
            actor_role=actor_role,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            details=details or {},
        )
        logger.info(f"Audit: {actor_name} ({actor_role}) {action} {resource_type}:{resource_id}")
        return entry

    def query(self, actor_role: str = None, action: str = None, search: str = None):
        """
        Filter the audit log for the admin console.

        Args:
            actor_role: Exact role match ("admin", "client", "system"); "all" or empty ignores it
            action: Substring of the action name; "all" or empty ignores it
            search: Case-insensitive text matched against actor name and action

        Returns:
            QuerySet: Matching entries, newest first
        """
        entries = AuditLogEntry.objects.all()

        if actor_role and actor_role != "all":
            entries = entries.filter(actor_role=actor_role)

        if action and action != "all":
            entries = entries.filter(action__contains=action)

        if search:
            entries = entries.filter(
                Q(actor_name__icontains=search) | Q(action__icontains=search)
            )

        return entries.order_by("-timestamp")

    def for_resource(self, resource_type: str, resource_id):
        return self.query().filter(resource_type=resource_type, resource_id=str(resource_id))
