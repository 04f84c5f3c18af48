"""
User Repository

Reads users with their skills. Agents' skills come from the `agent_skills`
join table embedded with the skill name.
"""
from typing import List

from helpdesk.models.schemas import AgentSkill, User, UserRole
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.errors import NotFoundError

USER_COLUMNS = "*, agent_skills(proficiency_level, skills(name))"


class UserRepository(BaseRepository):
    """Repository for users table operations."""

    table_name = "users"

    @staticmethod
    def _deserialize(row: dict) -> User:
        row = dict(row)
        skills = []
        for link in row.pop("agent_skills", None) or []:
            skill = link.get("skills") or {}
            if skill.get("name"):
                skills.append(AgentSkill(
                    name=skill["name"],
                    proficiency=link.get("proficiency_level") or 1,
                ))
        row["skills"] = skills
        return User.model_validate(row)

    async def get(self, user_id: int) -> User:
        def query():
            return self.table().select(USER_COLUMNS).eq("id", user_id).limit(1).execute()

        response = await self._run(f"get user {user_id}", query)
        row = self._first(response)
        if row is None:
            raise NotFoundError("User", user_id)
        return self._deserialize(row)

    async def list_active_by_role(self, role: UserRole) -> List[User]:
        def query():
            return self.table() \
                .select(USER_COLUMNS) \
                .eq("role", role.value) \
                .eq("is_active", True) \
                .order("id") \
                .execute()

        response = await self._run(f"list active {role.value}s", query)
        return [self._deserialize(row) for row in self._rows(response)]
