"""
Data access for the residence services.

Repositories scope every lookup with keyword filters (usually
residence_id=...), so a row from another residence reads as missing.
"""
from typing import Generic, TypeVar, Optional, List

from django.db import transaction
from django.db.models import QuerySet, Model

from core.exceptions import NotFoundError

T = TypeVar('T', bound=Model)


class BaseRepository(Generic[T]):
    """
    Common lookups and writes for one model.
    """

    def __init__(self, model: type[T]):
        self.model = model

    def get_by_id(self, id: int, **filters) -> Optional[T]:
        """Get a single instance by ID"""
        return self.model.objects.filter(id=id, **filters).first()

    def get_by_id_or_raise(self, id: int, **filters) -> T:
        """Get a single instance by ID or raise NotFoundError"""
        instance = self.get_by_id(id, **filters)
        if instance is None:
            raise NotFoundError(resource_type=self.model._meta.verbose_name.title(), resource_id=id)
        return instance

    def get_for_update(self, id: int, **filters) -> Optional[T]:
        """Get a single instance with a row lock; must run inside a transaction"""
        return self.model.objects.select_for_update().filter(id=id, **filters).first()

    def get_all(self, **filters) -> QuerySet[T]:
        """Get all instances matching filters"""
        return self.model.objects.filter(**filters)

    def create(self, **kwargs) -> T:
        """Create a new instance"""
        return self.model.objects.create(**kwargs)

    def update(self, instance: T, **kwargs) -> T:
        """Set the given fields and save"""
        for key, value in kwargs.items():
            setattr(instance, key, value)
        instance.save()
        return instance

    def delete(self, instance: T) -> None:
        """Delete an instance"""
        instance.delete()

    def exists(self, **filters) -> bool:
        """Check if instance exists"""
        return self.model.objects.filter(**filters).exists()

    @transaction.atomic
    def bulk_create(self, instances: List[T]) -> List[T]:
        """Bulk create instances"""
        return self.model.objects.bulk_create(instances)
