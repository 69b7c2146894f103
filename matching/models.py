"""
Data classes shared by every stage of the matching engine.

RawListing is the immutable engine input (one platform's catalog entry).
ProductDescriptor and MatchCandidate are derived during matching and never
stored.  CanonicalProduct with its PlatformPrice entries is the engine
output, serialized with to_dict() into the shape the product store and the
comparison UI read.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawListing:
    """One platform's catalog entry, as captured upstream."""

    id: str
    name: str
    category: str
    platform: str
    price: float = 0.0
    unit: str | None = None
    description: str | None = None
    image: str | None = None


@dataclass(frozen=True)
class ProductDescriptor:
    """Normalized view of a listing name."""

    clean_tokens: tuple[str, ...] = ()
    quantity: str | None = None
    product_type: str | None = None


@dataclass(frozen=True)
class MatchCandidate:
    """A listing from another platform scored against a source listing."""

    source: RawListing
    candidate: RawListing
    similarity: float


@dataclass
class PlatformPrice:
    """Price and availability of a product on one platform."""

    platform: str
    price: float
    available: bool
    delivery_time: str

    def to_dict(self) -> dict:
        return {
            "platform": self.platform,
            "price": self.price,
            "available": self.available,
            "deliveryTime": self.delivery_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlatformPrice":
        return cls(
            platform=data["platform"],
            price=data["price"],
            available=bool(data["available"]),
            delivery_time=data.get("deliveryTime", data.get("delivery_time", "")),
        )


@dataclass
class CanonicalProduct:
    """A listing enriched with one price entry per known platform."""

    id: str
    name: str
    category: str
    unit: str
    description: str
    source_platform: str
    image: str | None = None
    prices: list[PlatformPrice] = field(default_factory=list)

    def price_for(self, platform_id: str) -> PlatformPrice | None:
        """Entry for *platform_id*, or None if absent."""
        for entry in self.prices:
            if entry.platform == platform_id:
                return entry
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "description": self.description,
            "image": self.image,
            "source": self.source_platform,
            "prices": [entry.to_dict() for entry in self.prices],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CanonicalProduct":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            category=data["category"],
            unit=data.get("unit") or "",
            description=data.get("description") or "",
            source_platform=data.get("source", ""),
            image=data.get("image"),
            prices=[PlatformPrice.from_dict(p) for p in data.get("prices", [])],
        )
