"""
Unit tests for related-skill expansion.
"""

import json

import pytest

from cv_tailor.core.skill_expander import (
    default_skill_expansion_map, expand_all_related_skills, expand_related_skills,
    load_skill_expansion_map, related_skills_by_requirement
)
from cv_tailor.models.profile import Skill

USER_SKILLS = [
    Skill(id="1", name="Spring Boot"),
    Skill(id="2", name="Docker"),
    Skill(id="3", name="Maven"),
]


@pytest.mark.unit
def test_java_expands_to_spring_boot_and_maven():
    related = expand_related_skills("Java", USER_SKILLS)
    assert [skill.name for skill in related] == ["Spring Boot", "Maven"]


@pytest.mark.unit
def test_empty_user_skills_or_unknown_skill():
    assert expand_related_skills("java", []) == []
    assert expand_related_skills("nonexistent-skill", USER_SKILLS) == []


@pytest.mark.unit
def test_lookup_is_case_insensitive():
    assert expand_related_skills("  JAVA ", USER_SKILLS) == expand_related_skills("java", USER_SKILLS)


@pytest.mark.unit
def test_substring_match_against_user_skill_names():
    skills = [Skill(id="x", name="Spring Boot Framework")]
    related = expand_related_skills("java", skills)
    assert [skill.id for skill in related] == ["x"]


@pytest.mark.unit
def test_union_over_required_skills_deduplicates_by_id():
    related = expand_all_related_skills(["Java", "Spring Boot"], USER_SKILLS)
    ids = [skill.id for skill in related]
    assert len(ids) == len(set(ids))
    assert set(ids) == {"1", "3"}


@pytest.mark.unit
def test_related_skills_by_requirement():
    by_requirement = related_skills_by_requirement(["Java", "AWS"], USER_SKILLS)
    assert [s.name for s in by_requirement["Java"]] == ["Spring Boot", "Maven"]
    assert by_requirement["AWS"] == []


@pytest.mark.unit
def test_custom_map_from_file(tmp_path):
    path = tmp_path / "map.json"
    path.write_text(json.dumps({"Elixir": ["Phoenix", "Ecto"]}), encoding="utf-8")
    table = load_skill_expansion_map(path)

    assert table == {"elixir": ["phoenix", "ecto"]}
    related = expand_related_skills("elixir", [Skill(id="p", name="Phoenix")], table)
    assert [s.id for s in related] == ["p"]
    assert expand_related_skills("java", USER_SKILLS, table) == []


@pytest.mark.unit
def test_malformed_map_is_rejected(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"java": "spring"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_skill_expansion_map(path)


@pytest.mark.unit
def test_default_map_ships_with_package():
    table = default_skill_expansion_map()
    assert "spring boot" in table["java"]
    assert "aws" in table
