"""Configuration fiscale d'une boutique."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shopify_tickets.utils.dates import utc_now


class StoreConfig(BaseModel):
    """Configuration d'une boutique, partitionnée par domaine.

    FR: ``taxes_included`` indique si les prix de la boutique sont TTC ; il
        détermine le calcul des montants HT des récapitulatifs.
    EN: ``taxes_included`` tells whether shop prices include tax.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    shop: str
    taxes_included: bool
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def id(self) -> str:
        return self.shop

    def to_document(self) -> dict[str, Any]:
        document = self.model_dump(mode="json", by_alias=True)
        document["id"] = self.shop
        document["partitionKey"] = self.shop
        return document
