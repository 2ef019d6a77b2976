"""Order domain constants.

``OrderKind`` is the order discriminator: it decides which header fields
are required at placement and which may be edited afterwards.  Order
status is a free-form string supplied by the caller, so no state machine
is defined here.
"""

from django.db import models


class OrderKind(models.TextChoices):
    INDIVIDUAL = "individual", "Individual"
    LEGAL = "legal", "Legal entity"


# Header fields each kind accepts in a partial update.
KIND_EDITABLE_FIELDS: dict[str, tuple[str, ...]] = {
    OrderKind.INDIVIDUAL.value: ("phone", "name"),
    OrderKind.LEGAL.value: ("organization", "tax_id", "comment"),
}

COMMON_EDITABLE_FIELDS: tuple[str, ...] = ("price", "bonus", "status")

IDEMPOTENCY_KEY_MAX_LENGTH = 255
