from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models
from core.constants import UserRole


class UserManager(DjangoUserManager):
    """Email is the identity key across residences"""

    def get_by_email(self, email):
        """Case-insensitive lookup, None when no profile uses the address"""
        if not email:
            return None
        return self.filter(email__iexact=email.strip()).first()


class User(AbstractUser):
    """Profile of a person using the portal - Resident/Guard/Syndic"""
    full_name = models.CharField(max_length=255, blank=True)
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=30, blank=True)
    role = models.CharField(max_length=20, choices=UserRole.CHOICES, default=UserRole.RESIDENT)
    residence = models.ForeignKey(
        'residences.Residence',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='primary_profiles',
        help_text="Residence the user currently acts in",
    )
    verified = models.BooleanField(default=False)

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=['residence', 'role']),
        ]

    def __str__(self):
        return f"{self.display_name} ({self.get_role_display()})"

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username

    @property
    def is_syndic(self):
        return self.role == UserRole.SYNDIC
