from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse, AddressInput
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(user_data["id"])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Update username and phone"""
    return service.update_profile(user_data["id"], profile_data)


@router.post("/me/addresses", response_model=ProfileResponse, status_code=201)
async def add_address(
    address_data: AddressInput,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Add a saved delivery address"""
    return service.add_address(user_data["id"], address_data)


@router.put("/me/addresses/{address_id}", response_model=ProfileResponse)
async def update_address(
    address_id: str,
    address_data: AddressInput,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.update_address(user_data["id"], address_id, address_data)


@router.delete("/me/addresses/{address_id}", response_model=ProfileResponse)
async def delete_address(
    address_id: str,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.delete_address(user_data["id"], address_id)
