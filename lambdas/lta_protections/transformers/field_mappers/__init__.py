"""Field mapper modules for the bespoke parts of the two pipelines.

Modules:
    map_pension_debits: Pension debit list rebuild (client -> NPS)
    map_certificate_date: Certificate date/time fusion (NPS -> client)
    map_protection_details: Protection branch flattening (NPS -> client)
"""

__all__ = [
    "map_pension_debits",
    "map_certificate_date",
    "map_protection_details",
]
