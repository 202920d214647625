"""Generate-CV task: scoring, planning, content generation and validation"""

from typing import List, Optional

from .task_runner import TaskRunner, pipeline_stage
from ..core.cache import PipelineCaches, relevant_experience_cache_key
from ..core.content_generator import ContentGenerator, build_cv_data
from ..core.content_validator import validate_cv_content
from ..core.data_manager import DataManager
from ..core.errors import ContentValidationError, InputError, PipelineError
from ..core.relevance_scorer import (
    RelevantExperience, ScoringWeights, extract_relevant_experience, filter_skills_by_relevance,
    score_and_sort_skills, score_and_sort_work_experiences
)
from ..core.skill_expander import expand_all_related_skills
from ..core.structure_planner import StructurePlanner
from ..models.analysis import AnalysisOutput
from ..models.cv import CVContent, CVStructure
from ..models.job import JobRequirements
from ..models.profile import ProfileSnapshot
from ..models.task import AnalysisRecord, CVRecord, GenerateCVPayload, TaskStatus
from ..utils.config import PipelineConfig, get_settings
from ..utils.helpers import utc_now
from ..utils.logger import pipeline_logger

TASK_NAME = "generate-cv"


class CVService:
    """Runs the generate-CV task for one CV record"""

    def __init__(self, data_manager: DataManager, planner: StructurePlanner, content_generator: ContentGenerator,
                 caches: PipelineCaches, runner: TaskRunner, config: Optional[PipelineConfig] = None):
        self.data_manager = data_manager
        self.planner = planner
        self.content_generator = content_generator
        self.caches = caches
        self.runner = runner
        self.config = config or get_settings().pipeline
        self.weights = ScoringWeights.from_config(self.config)

    async def _load_analysis(self, payload: GenerateCVPayload) -> AnalysisRecord:
        analysis = await self.data_manager.get_analysis_record(payload.analysis_result_id)
        if analysis is None:
            raise InputError(f"Analysis {payload.analysis_result_id} not found",
                             context={"analysis_result_id": payload.analysis_result_id})
        if analysis.status != TaskStatus.COMPLETED:
            raise InputError(f"Analysis {analysis.id} is {analysis.status.value}, not completed",
                             context={"analysis_result_id": analysis.id, "status": analysis.status.value})
        if analysis.job_requirements is None:
            raise InputError(f"Analysis {analysis.id} has no stored job requirements",
                             context={"analysis_result_id": analysis.id})
        return analysis

    def _relevant_experience(self, profile: ProfileSnapshot, job_description: str) -> RelevantExperience:
        key = relevant_experience_cache_key(profile.user_id, job_description)
        cached = self.caches.relevant_experience.get(key)
        if cached is not None:
            return cached
        relevant = extract_relevant_experience(profile, job_description)
        self.caches.relevant_experience.set(key, relevant)
        return relevant

    async def _generate_validated(self, profile: ProfileSnapshot, structure: CVStructure,
                                  requirements: JobRequirements, relevant: RelevantExperience) -> CVContent:
        """Generate content, regenerating once when validation fails"""
        feedback: Optional[List[str]] = None
        for attempt in (1, 2):
            with pipeline_stage("generate-content"):
                content = await self.content_generator.generate(profile, structure, requirements, relevant, feedback)

            with pipeline_stage("validate-content"):
                result = validate_cv_content(content, profile, requirements)
                if result.is_valid:
                    return content
                pipeline_logger.warning(
                    f"Content validation attempt {attempt} failed: {'; '.join(result.violations)}"
                )
                feedback = result.violations

        raise ContentValidationError(
            "Generated content is not grounded in the profile",
            violations=feedback or [],
        )

    async def _run_once(self, payload: GenerateCVPayload) -> CVRecord:
        with pipeline_stage("load-input"):
            record = await self.data_manager.get_cv_record(payload.cv_id)
            if record is None:
                raise InputError(f"CV record {payload.cv_id} not found", context={"cv_id": payload.cv_id})
            record = await self.data_manager.save_cv_record(record.model_copy(update={
                "status": TaskStatus.PROCESSING,
                "cv_data": None,
                "error_message": None,
                "error_context": None,
                "completed_at": None,
            }))
            analysis = await self._load_analysis(payload)
            profile = await self.data_manager.get_profile_snapshot(payload.user_id)
            if profile is None:
                raise InputError(f"No profile found for user {payload.user_id}", context={"user_id": payload.user_id})
            requirements = analysis.job_requirements

        with pipeline_stage("score-relevance"):
            relevant = self._relevant_experience(profile, payload.job_description)
            scored_experiences = score_and_sort_work_experiences(profile.work_experiences, requirements, self.weights)
            related = expand_all_related_skills(requirements.required_skills, profile.skills)
            scored_skills = score_and_sort_skills(
                profile.skills, requirements.required_skills, requirements.preferred_skills, related, self.weights
            )
            filtered_skills = filter_skills_by_relevance(
                scored_skills, self.config.skill_min_score, self.config.skill_max_count
            )

        with pipeline_stage("plan-structure"):
            summary = AnalysisOutput(
                match_score=analysis.match_score or 0,
                strengths=analysis.strengths,
                gaps=analysis.gaps,
                missing_skills=analysis.missing_skills,
                suggested_focus_areas=analysis.suggested_focus_areas,
            )
            structure = await self.planner.plan(
                requirements, summary, scored_experiences, filtered_skills, profile.summary_counts()
            )

        content = await self._generate_validated(profile, structure, requirements, relevant)

        with pipeline_stage("store-result"):
            completed = record.model_copy(update={
                "user_id": payload.user_id,
                "job_description_id": payload.job_description_id,
                "analysis_result_id": payload.analysis_result_id,
                "status": TaskStatus.COMPLETED,
                "cv_data": build_cv_data(profile, content),
                "completed_at": utc_now(),
            })
            return await self.data_manager.save_cv_record(completed)

    async def _mark_failed(self, cv_id: str, error: PipelineError):
        record = await self.data_manager.get_cv_record(cv_id)
        if record is None:
            return
        await self.data_manager.save_cv_record(record.model_copy(update={
            "status": TaskStatus.FAILED,
            "cv_data": None,
            "error_message": str(error),
            "error_context": error.to_diagnostic(),
        }))
        pipeline_logger.info(f"CV {cv_id} marked failed")

    async def generate_cv(self, payload: GenerateCVPayload) -> CVRecord:
        """Generate a tailored CV from a completed analysis"""
        return await self.runner.run(
            TASK_NAME,
            payload.cv_id,
            lambda: self._run_once(payload),
            on_failure=lambda error: self._mark_failed(payload.cv_id, error),
        )
