"""Analyze task: requirements extraction and match analysis"""

from typing import Optional

from .task_runner import TaskRunner, pipeline_stage
from ..core.data_manager import DataManager
from ..core.errors import InputError, PipelineError
from ..core.match_analyzer import MatchAnalyzer
from ..core.requirements_extractor import RequirementsExtractor
from ..models.task import AnalysisRecord, AnalyzePayload, TaskStatus
from ..utils.helpers import utc_now
from ..utils.logger import pipeline_logger

TASK_NAME = "analyze"


class AnalysisService:
    """Runs the analyze task for one analysis record"""

    def __init__(self, data_manager: DataManager, extractor: RequirementsExtractor,
                 analyzer: MatchAnalyzer, runner: TaskRunner):
        self.data_manager = data_manager
        self.extractor = extractor
        self.analyzer = analyzer
        self.runner = runner

    async def _load_record(self, payload: AnalyzePayload) -> AnalysisRecord:
        record = await self.data_manager.get_analysis_record(payload.analysis_result_id)
        if record is None:
            raise InputError(f"Analysis record {payload.analysis_result_id} not found",
                             context={"analysis_result_id": payload.analysis_result_id})
        return record

    async def _run_once(self, payload: AnalyzePayload) -> AnalysisRecord:
        with pipeline_stage("load-input"):
            record = await self._load_record(payload)
            record = await self.data_manager.save_analysis_record(record.model_copy(update={
                "status": TaskStatus.PROCESSING,
                "error_message": None,
                "error_context": None,
                "completed_at": None,
            }))
            profile = await self.data_manager.get_profile_snapshot(payload.user_id)
            if profile is None:
                raise InputError(f"No profile found for user {payload.user_id}",
                                 context={"user_id": payload.user_id})

        with pipeline_stage("extract-requirements"):
            requirements = await self.extractor.extract(payload.job_description)

        with pipeline_stage("analyze-match"):
            output = await self.analyzer.analyze(profile, requirements, payload.job_description)

        with pipeline_stage("store-result"):
            completed = record.model_copy(update={
                "user_id": payload.user_id,
                "job_description_id": payload.job_description_id,
                "status": TaskStatus.COMPLETED,
                "match_score": output.match_score,
                "strengths": output.strengths,
                "gaps": output.gaps,
                "missing_skills": output.missing_skills,
                "suggested_focus_areas": output.suggested_focus_areas,
                "job_requirements": requirements,
                "raw_analysis": output.model_dump(mode="json", by_alias=True),
                "completed_at": utc_now(),
            })
            return await self.data_manager.save_analysis_record(completed)

    async def _mark_failed(self, analysis_id: str, error: PipelineError):
        record: Optional[AnalysisRecord] = await self.data_manager.get_analysis_record(analysis_id)
        if record is None:
            return
        await self.data_manager.save_analysis_record(record.model_copy(update={
            "status": TaskStatus.FAILED,
            "error_message": str(error),
            "error_context": error.to_diagnostic(),
        }))
        pipeline_logger.info(f"Analysis {analysis_id} marked failed")

    async def analyze(self, payload: AnalyzePayload) -> AnalysisRecord:
        """Analyze a profile against a job description and store the result"""
        return await self.runner.run(
            TASK_NAME,
            payload.analysis_result_id,
            lambda: self._run_once(payload),
            on_failure=lambda error: self._mark_failed(payload.analysis_result_id, error),
        )
