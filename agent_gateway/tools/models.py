"""
Normalized catalog and checkout shapes returned by the Shopify client.
Field aliases keep the camelCase names agents see in tool payloads.
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ShopCredentials:
    """What the client needs to call a shop's GraphQL APIs."""
    shop: str
    access_token: str
    storefront_token: Optional[str] = None


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Money(_CamelModel):
    amount: str
    currency_code: str = Field(alias="currencyCode")


class PriceRange(_CamelModel):
    min_variant_price: Money = Field(alias="minVariantPrice")
    max_variant_price: Money = Field(alias="maxVariantPrice")


class ProductImage(_CamelModel):
    url: str
    alt_text: Optional[str] = Field(default=None, alias="altText")


class Variant(_CamelModel):
    id: str
    title: str
    price: str
    available_for_sale: bool = Field(default=False, alias="availableForSale")
    sku: Optional[str] = None


class Product(_CamelModel):
    id: str
    title: str
    description: str = ""
    handle: str
    featured_image: Optional[ProductImage] = Field(default=None, alias="featuredImage")
    price_range: PriceRange = Field(alias="priceRange")
    variants: List[Variant] = Field(default_factory=list)

    @property
    def available_variants(self) -> List[Variant]:
        return [v for v in self.variants if v.available_for_sale]


class CheckoutResult(_CamelModel):
    checkout_url: str = Field(alias="checkoutUrl")
    checkout_id: str = Field(alias="checkoutId")
    total_price: str = Field(alias="totalPrice")
    currency_code: str = Field(alias="currencyCode")
    # Attribution pair the cart was created with
    attributes: List[dict] = Field(default_factory=list)
