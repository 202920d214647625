"""Shared fixtures: a scripted generator, sample profiles and temporary storage"""

from datetime import date

import pytest

from cv_tailor.core.cache import PipelineCaches
from cv_tailor.core.data_manager import DataManager
from cv_tailor.core.errors import GenerationError
from cv_tailor.models.profile import Education, Language, ProfileSnapshot, Skill, WorkExperience
from cv_tailor.services.task_runner import TaskRunner


class FakeGenerator:
    """Replies from a script keyed by schema class

    Each script entry is a model instance, a dict validated against the
    schema, an exception to raise, or a callable taking the prompt. The last
    entry of a script repeats once the others are used up.
    """

    def __init__(self, responses=None):
        self.responses = {schema: list(items) for schema, items in (responses or {}).items()}
        self.calls = []

    def script(self, schema, *items):
        self.responses[schema] = list(items)
        return self

    def calls_for(self, schema):
        return [prompt for called_schema, prompt in self.calls if called_schema is schema]

    async def generate(self, prompt, schema, system_prompt=None):
        self.calls.append((schema, prompt))
        queue = self.responses.get(schema)
        if not queue:
            raise GenerationError(f"No scripted reply for {schema.__name__}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(reply, Exception):
            raise reply
        if callable(reply) and not isinstance(reply, type):
            reply = reply(prompt)
        if isinstance(reply, dict):
            reply = schema.model_validate(reply)
        return reply


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fake_generator():
    return FakeGenerator()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def caches(clock):
    return PipelineCaches(clock=clock, requirements_ttl=3600, relevant_experience_ttl=1800, cleanup_interval=600)


@pytest.fixture
def runner():
    return TaskRunner(max_attempts=2, min_wait=0, max_wait=0, timeout=5)


@pytest.fixture
def data_manager(tmp_path):
    return DataManager(str(tmp_path / "cv_tailor_test.db"))


@pytest.fixture
def backend_profile():
    """Profile with Spring Boot and Docker but no AWS"""
    return ProfileSnapshot(
        user_id="user-1",
        first_name="Ada",
        last_name="Moreira",
        email="ada@example.com",
        phone="+351 900 000 000",
        city="Lisbon",
        country="Portugal",
        personal_summary="Backend engineer building payment services.",
        work_experiences=[
            WorkExperience(
                id="exp-1",
                company="Acme Payments",
                position="Backend Engineer",
                start_date=date(2021, 3, 1),
                current=True,
                description="Designed Java microservices with Spring Boot and Docker. Led API design for card payments.",
                order_index=0,
            ),
            WorkExperience(
                id="exp-2",
                company="Globex",
                position="Junior Developer",
                start_date=date(2018, 1, 1),
                end_date=date(2020, 6, 30),
                description="Maintained internal PHP tools.",
                order_index=1,
            ),
        ],
        skills=[
            Skill(id="s-1", name="Spring Boot", category="Technical", proficiency_level="Advanced"),
            Skill(id="s-2", name="Docker", category="Technical", proficiency_level="Intermediate"),
        ],
        education=[
            Education(
                id="edu-1",
                institution="University of Lisbon",
                degree="BSc",
                field_of_study="Computer Science",
                start_date=date(2014, 9, 1),
                end_date=date(2017, 7, 1),
            ),
        ],
        languages=[
            Language(id="lang-1", name="English", proficiency_level="Fluent"),
            Language(id="lang-2", name="Portuguese", proficiency_level="Native"),
        ],
    )


@pytest.fixture
def bare_profile():
    """Profile with one experience and no education or languages"""
    return ProfileSnapshot(
        user_id="user-2",
        first_name="Sam",
        personal_summary="Data engineer.",
        work_experiences=[
            WorkExperience(
                id="exp-9",
                company="Initech",
                position="Data Engineer",
                start_date=date(2020, 2, 1),
                current=True,
                description="Built Python pipelines on AWS.",
            ),
        ],
        skills=[Skill(id="s-9", name="Python", proficiency_level="Expert")],
    )
