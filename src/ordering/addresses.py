"""Customer address book.

The server keeps exactly one default address per customer; the client
reflects that, validates new addresses before sending them and refuses to
delete the default while other addresses exist.
"""

import re

import structlog
from protean.exceptions import ValidationError

from shared.backend.port import BackendPort
from shared.schemas import Address, AddressRequest

logger = structlog.get_logger(__name__)

_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]{8,20}$")

_REQUIRED_FIELDS = {
    "recipient_name": "Recipient name is required",
    "recipient_phone": "Phone number is required",
    "address_line": "Address line is required",
    "ward": "Ward is required",
    "district": "District is required",
    "city": "City is required",
}


def validate_address(request: AddressRequest) -> None:
    """Raise `ValidationError` listing every missing or malformed field."""
    errors: dict[str, list[str]] = {}
    for field, message in _REQUIRED_FIELDS.items():
        if not (getattr(request, field) or "").strip():
            errors[field] = [message]

    phone = (request.recipient_phone or "").strip()
    if phone and (not _PHONE_PATTERN.match(phone) or not re.search(r"\d", phone)):
        errors["recipient_phone"] = [f"Invalid phone number: {phone!r}"]

    if errors:
        raise ValidationError(errors)


class AddressBook:
    def __init__(self, backend: BackendPort):
        self.backend = backend
        self.addresses: list[Address] = []

    def refresh(self) -> list[Address]:
        self.addresses = list(self.backend.list_addresses())
        return self.addresses

    def list(self) -> list[Address]:
        return list(self.addresses)

    @property
    def default(self) -> Address | None:
        return next((a for a in self.addresses if a.is_default), None)

    def get(self, address_id) -> Address | None:
        return next((a for a in self.addresses if a.id == str(address_id)), None)

    def create(self, request: AddressRequest) -> Address:
        validate_address(request)
        address = self.backend.create_address(request)
        self.refresh()
        logger.info("Address added", address_id=address.id, is_default=address.is_default)
        return address

    def set_default(self, address_id) -> Address:
        if self.get(address_id) is None:
            raise ValidationError({"address_id": [f"Address {address_id} not found"]})
        address = self.backend.set_default_address(str(address_id))
        self.refresh()
        logger.info("Default address changed", address_id=address.id)
        return address

    def delete(self, address_id) -> None:
        address = self.get(address_id)
        if address is None:
            raise ValidationError({"address_id": [f"Address {address_id} not found"]})
        if address.is_default and len(self.addresses) > 1:
            raise ValidationError(
                {"address_id": ["Cannot delete default address. Please set another address as default first."]}
            )
        self.backend.delete_address(address.id)
        self.refresh()
        logger.info("Address deleted", address_id=address.id)
