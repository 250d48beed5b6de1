from supabase import Client
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileResponse, AddressInput, SavedAddress
)
from typing import List
from fastapi import HTTPException
from datetime import datetime
import uuid
import logging

logger = logging.getLogger(__name__)


def apply_address_upsert(addresses: List[SavedAddress], address_data: AddressInput, address_id: str = None) -> List[SavedAddress]:
    """Return a new address list with the address added (address_id None) or replaced.
    A default address clears the default flag on every other entry."""
    if address_id is not None and not any(a.id == address_id for a in addresses):
        raise HTTPException(status_code=404, detail="Address not found")

    new_address = SavedAddress(id=address_id or str(uuid.uuid4()), **address_data.model_dump())
    updated = []
    for addr in addresses:
        if addr.id == new_address.id:
            updated.append(new_address)
        elif new_address.is_default:
            updated.append(addr.model_copy(update={"is_default": False}))
        else:
            updated.append(addr)
    if address_id is None:
        updated.append(new_address)
    return updated


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update username/phone. An explicitly empty phone clears it."""
        try:
            update_data = {}
            if profile_data.username is not None:
                update_data["username"] = profile_data.username
            if "phone" in profile_data.model_fields_set:
                update_data["phone"] = profile_data.phone

            if not update_data:
                return self.get_profile(user_id)

            update_data["updated_at"] = datetime.utcnow().isoformat()
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _save_addresses(self, user_id: str, addresses: List[SavedAddress]) -> ProfileResponse:
        result = self.supabase.table("profiles")\
            .update({"saved_addresses": [a.model_dump() for a in addresses]})\
            .eq("id", user_id)\
            .execute()

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")

        return ProfileResponse(**result.data[0])

    def add_address(self, user_id: str, address_data: AddressInput) -> ProfileResponse:
        """Append a saved address"""
        try:
            profile = self.get_profile(user_id)
            addresses = apply_address_upsert(profile.saved_addresses, address_data)
            return self._save_addresses(user_id, addresses)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_address(self, user_id: str, address_id: str, address_data: AddressInput) -> ProfileResponse:
        """Replace a saved address"""
        try:
            profile = self.get_profile(user_id)
            addresses = apply_address_upsert(profile.saved_addresses, address_data, address_id)
            return self._save_addresses(user_id, addresses)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_address(self, user_id: str, address_id: str) -> ProfileResponse:
        """Remove a saved address"""
        try:
            profile = self.get_profile(user_id)
            remaining = [a for a in profile.saved_addresses if a.id != address_id]
            if len(remaining) == len(profile.saved_addresses):
                raise HTTPException(status_code=404, detail="Address not found")
            return self._save_addresses(user_id, remaining)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
