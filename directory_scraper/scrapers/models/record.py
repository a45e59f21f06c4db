from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Populated only by detail-page enrichment
DETAIL_FIELDS = ("bio", "people")


@dataclass
class Address:
    """Postal address parts, each optional."""
    street: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None       # state / province code
    postal_code: Optional[str] = None

    def parts(self) -> List[Optional[str]]:
        return [self.street, self.city, self.region, self.postal_code]

    def formatted(self) -> str:
        """Non-empty parts joined with ', ' in street, city, region, postal order."""
        return ", ".join(p.strip() for p in self.parts() if p and p.strip())

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "street": self.street,
            "city": self.city,
            "region": self.region,
            "postalCode": self.postal_code,
        }


@dataclass
class Record:
    """
    Canonical listing record.

    Identity for dedup is profile_url if present, else name. Records with
    neither are never admitted.
    """
    name: Optional[str] = None
    address: Address = field(default_factory=Address)
    phone: Optional[str] = None
    website: Optional[str] = None
    profile_url: Optional[str] = None
    rating: Optional[str] = None
    reviews: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image: Optional[str] = None
    practice_areas: Optional[str] = None
    bio: Optional[str] = None
    people: Optional[str] = None

    @property
    def address_formatted(self) -> str:
        return self.address.formatted()

    @property
    def identity_key(self) -> Optional[str]:
        return self.profile_url or self.name or None

    def to_dict(self, include_detail_fields: bool = True) -> Dict[str, Any]:
        """
        Serialize to the output item shape (camelCase keys).

        Args:
            include_detail_fields: Emit bio/people keys. Off for records that
                never went through detail enrichment.
        """
        item = {
            "name": self.name,
            "address": self.address.to_dict(),
            "addressFormatted": self.address_formatted,
            "phone": self.phone,
            "website": self.website,
            "rating": self.rating,
            "reviews": self.reviews,
            "profileUrl": self.profile_url,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "image": self.image,
            "practiceAreas": self.practice_areas,
        }
        if include_detail_fields:
            item["bio"] = self.bio
            item["people"] = self.people
        return item

    def __repr__(self):
        return f"<Record {self.identity_key!r}>"
