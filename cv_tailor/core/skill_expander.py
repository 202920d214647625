"""Related-skill expansion

A required skill such as "Java" credits a user who only listed "Spring Boot".
The co-occurrence table lives in ``cv_tailor/data/skill_expansion.json`` and
can be swapped for another file; lookups are pure functions over it.
"""

import json
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union

from ..models.profile import Skill
from ..utils.helpers import normalize_skill_name
from ..utils.logger import pipeline_logger

DEFAULT_MAP_RESOURCE = "skill_expansion.json"


def load_skill_expansion_map(path: Optional[Union[str, Path]] = None) -> Dict[str, List[str]]:
    """Load the expansion table, normalizing keys and values"""
    if path is None:
        raw = resources.files("cv_tailor.data").joinpath(DEFAULT_MAP_RESOURCE).read_text(encoding="utf-8")
    else:
        raw = Path(path).read_text(encoding="utf-8")

    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("skill expansion map must be a JSON object")

    table: Dict[str, List[str]] = {}
    for key, values in data.items():
        if not isinstance(values, list):
            raise ValueError(f"skill expansion entry for {key!r} must be a list")
        table[normalize_skill_name(key)] = [normalize_skill_name(v) for v in values if isinstance(v, str) and v.strip()]

    pipeline_logger.debug(f"Loaded skill expansion map with {len(table)} entries")
    return table


@lru_cache(maxsize=1)
def default_skill_expansion_map() -> Mapping[str, List[str]]:
    return load_skill_expansion_map()


def _find_user_skill(related_name: str, user_skills: List[Skill]) -> Optional[Skill]:
    for skill in user_skills:
        if normalize_skill_name(skill.name) == related_name:
            return skill

    # "spring boot" also matches "Spring Boot Framework"
    for skill in user_skills:
        normalized = normalize_skill_name(skill.name)
        if normalized and (related_name in normalized or normalized in related_name):
            return skill
    return None


def expand_related_skills(required_skill: str, user_skills: Iterable[Skill],
                          expansion_map: Optional[Mapping[str, List[str]]] = None) -> List[Skill]:
    """User skills associated with one required skill, in map order"""
    table = default_skill_expansion_map() if expansion_map is None else expansion_map
    related_names = table.get(normalize_skill_name(required_skill), [])
    user_skills = list(user_skills or [])
    if not related_names or not user_skills:
        return []

    found: Dict[str, Skill] = {}
    for related_name in related_names:
        match = _find_user_skill(related_name, user_skills)
        if match is not None and match.id not in found:
            found[match.id] = match
    return list(found.values())


def expand_all_related_skills(required_skills: Iterable[str], user_skills: Iterable[Skill],
                              expansion_map: Optional[Mapping[str, List[str]]] = None) -> List[Skill]:
    """Union of related user skills over all required skills, deduplicated by id"""
    user_skills = list(user_skills or [])
    found: Dict[str, Skill] = {}
    for required_skill in required_skills or []:
        for skill in expand_related_skills(required_skill, user_skills, expansion_map):
            found.setdefault(skill.id, skill)
    return list(found.values())


def related_skills_by_requirement(required_skills: Iterable[str], user_skills: Iterable[Skill],
                                  expansion_map: Optional[Mapping[str, List[str]]] = None) -> Dict[str, List[Skill]]:
    """Map each required skill to the related user skills that evidence it"""
    user_skills = list(user_skills or [])
    return {
        required: expand_related_skills(required, user_skills, expansion_map)
        for required in required_skills or []
    }
