"""Shared enumerations and choices used across apps."""

from django.db import models


class MovementType(models.TextChoices):
    """Kinds of stock movement.

    ``ENTRADA`` and ``SAIDA`` carry a delta; ``AJUSTE`` carries the absolute
    balance the product is set to.
    """

    ENTRADA = "entrada", "Entrada"
    SAIDA = "saida", "Saída"
    AJUSTE = "ajuste", "Ajuste"


class DeliveryStatus(models.TextChoices):
    """Well-known delivery labels.

    Status is free text on the model; these are only the values the frontend
    offers by default.
    """

    PENDENTE = "Pendente", "Pendente"
    EM_ROTA = "Em rota", "Em rota"
    ENTREGUE = "Entregue", "Entregue"
    CANCELADA = "Cancelada", "Cancelada"
