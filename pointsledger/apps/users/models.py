# pointsledger/apps/users/models.py
from django.db import models


class CommunityUser(models.Model):
    ROLE_CHOICES = [
        ("user", "User"),
        ("admin", "Admin"),
    ]
    username = models.CharField(max_length=64, unique=True, db_index=True)
    email = models.EmailField(max_length=254, null=True, blank=True, db_index=True)
    profile_pic = models.URLField(max_length=512, blank=True, default="")
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default="user")
    # Off-chain reward balance; only moved through points history writes
    total_points = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_points__gte=0),
                name="users_total_points_non_negative",
            )
        ]

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def display_name(self):
        return self.username or self.email or str(self.pk)

    def __str__(self):
        return self.display_name()
