from __future__ import annotations


class LedgerError(Exception):
    """Base de toutes les erreurs métier du ledger."""


class ValidationError(LedgerError, ValueError):
    """Champ requis manquant ou invalide (create/update). Aucun état modifié."""


class NotFoundError(LedgerError, LookupError):
    """Identifiant inconnu. Aucun état modifié."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class ConstraintViolation(LedgerError):
    """Contrainte d'intégrité référentielle (ex: compte avec transactions)."""


class RateProviderError(LedgerError):
    """Le fournisseur de taux de change n'a pas pu répondre."""


class PersistenceError(LedgerError):
    """L'écriture du snapshot a échoué ; la mutation en mémoire a été annulée."""
