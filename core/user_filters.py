# core/user_filters.py

from typing import Iterable, List

from core import roles
from models.user import AdminStats, Profile, UserFilters


def matches_filters(user: Profile, filters: UserFilters) -> bool:
    if filters.user_type and user.user_type != filters.user_type:
        return False
    if filters.provider_type and user.provider_type != filters.provider_type:
        return False
    if filters.approval_status and user.approval_status != filters.approval_status:
        return False

    if filters.search:
        needle = filters.search.strip().lower()
        name = (user.name or "").lower()
        email = (user.email or "").lower()
        if needle not in name and needle not in email:
            return False

    return True


def filter_users(users: Iterable[Profile], filters: UserFilters) -> List[Profile]:
    return [u for u in users if matches_filters(u, filters)]


def compute_admin_stats(users: List[Profile]) -> AdminStats:
    return AdminStats(
        total_users=len(users),
        pending_users=sum(1 for u in users if roles.is_pending(u)),
        total_agents=sum(1 for u in users if roles.is_agent(u)),
        total_builders=sum(1 for u in users if roles.is_builder(u)),
    )
