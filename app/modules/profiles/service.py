import logging
from datetime import datetime, timezone
from supabase import Client
from app.config import settings
from app.core.errors import external_error_message
from app.modules.profiles.schemas import ProfileCreate, ProfileUpdate, ProfileResponse
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client, table: str = None):
        self.supabase = supabase
        self.table = table or settings.profiles_table

    def create_profile(self, profile_data: ProfileCreate) -> ProfileResponse:
        """Insert the single profile row for a newly registered user"""
        try:
            result = self.supabase.table(self.table).insert({
                "id": profile_data.id,
                "display_name": profile_data.display_name,
                "email": profile_data.email,
                "phone": profile_data.phone
            }).execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=external_error_message(e))

        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create profile")

        logger.info(f"Profile created for user {profile_data.id}")
        return ProfileResponse(**result.data[0])

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get the profile row for a user. Exactly one row is expected."""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=external_error_message(e))

        rows = result.data or []
        if not rows:
            raise HTTPException(status_code=404, detail="Profile not found")
        if len(rows) > 1:
            logger.error(f"Found {len(rows)} profile rows for user {user_id}")
            raise HTTPException(status_code=500, detail="Multiple profiles found")

        return ProfileResponse(**rows[0])

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's own profile row"""
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if profile_data.display_name is not None:
            update_data["display_name"] = profile_data.display_name
        if profile_data.phone is not None:
            update_data["phone"] = profile_data.phone

        try:
            result = self.supabase.table(self.table)\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=400, detail=external_error_message(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")

        return ProfileResponse(**result.data[0])
