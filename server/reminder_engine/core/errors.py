from __future__ import annotations
"""server/reminder_engine/core/errors.py
~~~~~~~~~~~~~~~~~~~~~~~~
Taxonomie d'erreurs du moteur de rappels.

- ComputationError : un libellé d'offset ne donne pas d'instant futur valide
  (récupéré localement : le libellé est ignoré).
- PersistenceError : échec lecture/écriture en base (pas de retry in-process).
- DeliveryError    : échec d'envoi sur le transport (retry borné puis abandon).
- ValidationError  : identité / catégorie / date invalide, rejetée AVANT
  tout calcul de planification.
"""


class ReminderError(Exception):
    """Base de toutes les erreurs métier."""


class ComputationError(ReminderError):
    pass


class PersistenceError(ReminderError):
    pass


class DeliveryError(ReminderError):
    pass


class ValidationError(ReminderError):
    pass
