"""
Person-related value types shared by the worker and employer repositories.
"""

import re
from dataclasses import dataclass
from typing import Optional

_TEL_SEPARATORS = re.compile(r"[\s\-.()+]")


def normalize_tel(tel: Optional[str]) -> str:
    """Strip separator characters so phone numbers compare digit-to-digit."""
    if not tel:
        return ""
    return _TEL_SEPARATORS.sub("", tel)


def format_tel(tel: Optional[str]) -> str:
    """Format an 11 digit mobile number as 010-1234-5678, else return as-is."""
    if not tel:
        return ""
    digits = re.sub(r"\D", "", tel)
    match = re.fullmatch(r"(\d{3})(\d{4})(\d{4})", digits)
    if match:
        return "-".join(match.groups())
    return tel


@dataclass
class PersonFilter:
    """
    Optional substring filters for the person picker.

    Empty fields are ignored. ``nationality`` only applies to workers.
    """

    name: str = ""
    tel: str = ""
    type: str = ""
    nationality: str = ""

    def is_empty(self) -> bool:
        return not any(
            (self.name.strip(), normalize_tel(self.tel), self.type.strip(),
             self.nationality.strip())
        )


@dataclass
class AddressLookupResult:
    """Result returned by the external postcode lookup."""

    zonecode: str
    address: str
    building_name: str = ""

    def to_address_fields(self, prefix: str = "addr") -> dict:
        """
        Map the lookup result onto a person's address columns.

        Workers also carry a university address, stored under the ``uni``
        prefix which has no "extra" column.
        """
        fields = {
            f"{prefix}_postcode": self.zonecode,
            f"{prefix}_street": self.address,
        }
        if prefix == "addr":
            fields["addr_extra"] = self.building_name
        return fields
