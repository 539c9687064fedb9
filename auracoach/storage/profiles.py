"""User profile repository over the key-value store."""

from datetime import datetime, timezone

from loguru import logger
from pydantic import ValidationError

from auracoach.core.errors import PersistenceError
from auracoach.schemas.assessment import PsychologicalAssessment
from auracoach.schemas.profile import MotivationalProfile, PsychologicalProfile, ProfileUpdate, UserProfile
from auracoach.storage.keys import profile_key
from auracoach.storage.kv import KeyValueStore


class ProfileRepository:
    """Reads and writes ``profile:{userId}`` records.

    Profiles are fetched fresh on every call; nothing is cached between
    requests. Updates are read-modify-write with last-write-wins semantics.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def get(self, user_id: str) -> UserProfile | None:
        raw = await self._store.get(profile_key(user_id))
        if raw is None:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Stored profile could not be decoded", user_id=user_id, error_count=e.error_count())
            raise PersistenceError(f"Stored profile for {user_id} is corrupt") from e

    async def get_or_default(self, user_id: str, email: str | None = None) -> UserProfile:
        """Return the stored profile, or an unsaved default profile on first contact."""
        profile = await self.get(user_id)
        if profile is None:
            logger.debug("No stored profile, using defaults", user_id=user_id)
            return UserProfile.default_for(user_id, email)
        return profile

    async def save(self, profile: UserProfile) -> UserProfile:
        await self._store.put(profile_key(profile.id), profile.model_dump_json(by_alias=True))
        return profile

    async def merge_update(self, user_id: str, update: ProfileUpdate, email: str | None = None) -> UserProfile:
        """Shallow-merge a partial update into the stored profile.

        Each sub-object (preferences, psychological profile) is merged field by
        field; only fields present in ``update`` overwrite stored values.

        Args:
            user_id: Owner of the profile
            update: Partial update; unset fields are ignored
            email: Email to record when the profile is created by this update

        Returns:
            The saved profile

        Raises:
            PersistenceError: If the store fails or holds an undecodable record
        """
        profile = await self.get_or_default(user_id, email)

        changes: dict = {"last_active": datetime.now(timezone.utc)}
        if update.preferences is not None:
            changes["preferences"] = profile.preferences.model_copy(
                update=update.preferences.model_dump(exclude_unset=True, exclude_none=True)
            )
        if update.psychological_profile is not None:
            current = profile.psychological_profile or PsychologicalProfile()
            changes["psychological_profile"] = current.model_copy(
                update=update.psychological_profile.model_dump(exclude_unset=True, exclude_none=True)
            )

        merged = profile.model_copy(update=changes)
        logger.info(
            "Profile updated",
            user_id=user_id,
            fields=sorted(key for key in changes if key != "last_active"),
        )
        return await self.save(merged)

    async def merge_assessment(self, user_id: str, assessment: PsychologicalAssessment) -> UserProfile | None:
        """Fold a diagnostic assessment delta into the psychological profile.

        Returns None without writing when the assessment carries nothing new.
        """
        if assessment.is_empty():
            return None

        profile = await self.get_or_default(user_id)
        current = profile.psychological_profile or PsychologicalProfile()
        changes: dict = {}

        if assessment.motivational_profile is not None:
            base = current.motivational_profile or MotivationalProfile()
            changes["motivational_profile"] = base.model_copy(
                update=assessment.motivational_profile.model_dump(exclude_none=True)
            )
        if assessment.change_readiness is not None:
            changes["change_readiness"] = assessment.change_readiness
        for score in ("mindset_score", "locus_score", "regulatory_focus_score"):
            value = getattr(assessment, score)
            if value is not None:
                changes[score] = value
        if assessment.risk_factors:
            changes["risk_factors"] = {**current.risk_factors, **assessment.risk_factors}

        merged = profile.model_copy(
            update={
                "psychological_profile": current.model_copy(update=changes),
                "last_active": datetime.now(timezone.utc),
            }
        )
        logger.debug("Assessment merged into profile", user_id=user_id, fields=sorted(changes))
        return await self.save(merged)
