"""Numérotation fiscale des tickets Shopify et reporting comptable mensuel.

FR: Attribue des numéros de ticket séquentiels aux commandes payées et aux
    remboursements, puis agrège les tickets du mois en une écriture comptable
    envoyée à l'ERP.
EN: Assigns sequential ticket numbers to paid orders and refunds, then
    aggregates each month's tickets into an accounting posting sent to the ERP.
"""
