from django.core.exceptions import ValidationError as DjangoValidationError

from registration.exceptions import NotFoundError


def first_or_not_found(queryset, resource_type: str, pk):
    """First row of queryset with the given pk, NotFoundError when missing or malformed."""
    try:
        instance = queryset.filter(pk=pk).first()
    except (DjangoValidationError, ValueError):
        instance = None
    if instance is None:
        raise NotFoundError(resource_type, pk)
    return instance
