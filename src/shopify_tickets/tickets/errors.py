"""Hiérarchie d'exceptions de la numérotation des tickets."""


class TicketError(Exception):
    """Erreur de base pour la numérotation des tickets."""


class TicketGenerationError(TicketError):
    """Impossible d'attribuer un numéro de ticket.

    FR: Tentatives épuisées sur le compteur, ou compteur illisible après un
        conflit de création. Le renvoi du webhook par Shopify sert de filet
        de sécurité (la numérotation est idempotente).
    EN: Retries exhausted or counter unreadable after a create conflict.
    """


class OrderAnnotationError(TicketError):
    """Le ticket est créé mais la commande Shopify n'a pas pu être annotée.

    FR: Le ticket n'est jamais annulé ; un nouvel envoi du webhook retrouve
        le ticket existant et retente l'annotation.
    EN: The ticket stays; webhook redelivery retries the annotation.
    """

    def __init__(self, message: str, ticket_number: str) -> None:
        super().__init__(message)
        self.ticket_number = ticket_number
