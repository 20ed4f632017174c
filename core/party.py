"""
TechShop Core — Client Party
==============================
Client contact fields carried by quotations and invoices.

A ClientInfo is a snapshot: an invoice converted from a quotation gets
its own copy, never a live reference. Required-field checks belong to
the document policies, so an incomplete ClientInfo can be constructed
and then refused with a structured rejection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union


@dataclass(frozen=True)
class ClientInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    def __post_init__(self):
        for field_name in ("name", "email", "phone", "address"):
            if not isinstance(getattr(self, field_name), str):
                raise ValueError(f"{field_name} must be a string.")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientInfo:
        return cls(
            name=data.get("name") or "",
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            address=data.get("address") or "",
        )

    @classmethod
    def coerce(cls, value: Union[ClientInfo, Mapping[str, Any]]) -> ClientInfo:
        if isinstance(value, ClientInfo):
            return value
        return cls.from_dict(value)
