from typing import Iterable, List

from civicsense.core.enums import Category
from civicsense.models.team import Team


def is_available_for(team: Team, category: Category) -> bool:
    return (
        team.is_active
        and team.current_load < team.capacity
        and Category(category) in team.specialties
    )


def find_available_for_category(teams: Iterable[Team], category: Category) -> List[Team]:
    """Least-loaded first, larger capacity first among equally loaded teams."""
    candidates = [t for t in teams if is_available_for(t, category)]
    return sorted(candidates, key=lambda t: (t.current_load, -t.capacity))
