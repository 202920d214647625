"""Job description to structured requirements"""

from typing import Optional

from pydantic import ValidationError

from .cache import PipelineCaches, job_requirements_cache_key
from .errors import PipelineError
from ..integrations.llm_api import StructuredGenerator
from ..models.job import JobRequirements
from ..utils.config import get_settings
from ..utils.logger import pipeline_logger

SYSTEM_PROMPT = (
    "You are an expert technical recruiter. You read job descriptions and list "
    "their requirements precisely, without adding anything the text does not say."
)

EXTRACTION_PROMPT = """Extract the requirements of the following job description.

Job description:
{job_description}

Rules:
- requiredSkills: skills, tools and technologies the job explicitly requires
- preferredSkills: nice-to-have skills ("a plus", "preferred", "bonus")
- qualifications: degrees, certifications and other formal qualifications
- experienceLevel: one of "entry", "mid", "senior", "executive", or "" when unclear
- keyResponsibilities: the main duties, one short sentence each
- Use the skill names as written in the text; do not invent skills
"""


class RequirementsExtractor:
    """Extracts JobRequirements through the generator, with caching"""

    def __init__(self, generator: StructuredGenerator, caches: PipelineCaches,
                 fallback_ttl: Optional[float] = None):
        self.generator = generator
        self.caches = caches
        self.fallback_ttl = fallback_ttl if fallback_ttl is not None else get_settings().pipeline.requirements_fallback_ttl

    async def extract(self, job_description: str) -> JobRequirements:
        """Structured requirements for a job description; never raises on generator failure"""
        key = job_requirements_cache_key(job_description)
        cached = self.caches.requirements.get(key)
        if cached is not None:
            pipeline_logger.debug(f"Job requirements cache hit: {key}")
            return cached

        try:
            requirements = await self.generator.generate(
                EXTRACTION_PROMPT.format(job_description=job_description),
                JobRequirements,
                system_prompt=SYSTEM_PROMPT,
            )
        except (PipelineError, ValidationError) as e:
            pipeline_logger.warning(f"Requirements extraction failed, using empty requirements: {e}")
            requirements = JobRequirements.empty()
            self.caches.requirements.set(key, requirements, ttl=self.fallback_ttl)
            return requirements

        pipeline_logger.info(
            f"Extracted requirements: {len(requirements.required_skills)} required, "
            f"{len(requirements.preferred_skills)} preferred skills"
        )
        self.caches.requirements.set(key, requirements)
        return requirements
