from ..models import AuditLog


def log_action(*, action, instance, actor="", user=None, changes=None):
    """
    Central audit logger.
    `actor` is the identity string handed over by the auth layer;
    `user` is attached when the action came through a logged-in request.
    """
    if not actor and user is not None:
        actor = user.get_username()

    AuditLog.objects.create(
        user=user,
        actor=actor or "system",
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )

