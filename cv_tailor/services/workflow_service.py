"""Task orchestration

WorkflowService owns the pipeline caches and wires stages, storage and the
generator into the three task entry points. Each task is addressed by a
caller-supplied id and moves pending -> processing -> completed | failed.
"""

from typing import Dict, Optional

from .analysis_service import AnalysisService
from .cv_service import CVService
from .import_service import ImportService
from .task_runner import TaskRunner
from ..core.cache import PipelineCaches
from ..core.content_generator import ContentGenerator
from ..core.data_manager import DataManager, get_data_manager
from ..core.match_analyzer import MatchAnalyzer
from ..core.requirements_extractor import RequirementsExtractor
from ..core.structure_planner import StructurePlanner
from ..integrations.llm_api import StructuredGenerator, get_llm_api
from ..models.task import (
    AnalysisRecord, AnalyzePayload, CVRecord, GenerateCVPayload, ImportProfilePayload
)
from ..utils.logger import pipeline_logger


class WorkflowService:
    """Entry points for the analyze, generate-CV and import-profile tasks"""

    def __init__(self, data_manager: Optional[DataManager] = None,
                 generator: Optional[StructuredGenerator] = None,
                 caches: Optional[PipelineCaches] = None,
                 runner: Optional[TaskRunner] = None):
        self.data_manager = data_manager or get_data_manager()
        self.generator = generator or get_llm_api()
        self.caches = caches or PipelineCaches()
        self.runner = runner or TaskRunner()

        self.analysis_service = AnalysisService(
            self.data_manager,
            RequirementsExtractor(self.generator, self.caches),
            MatchAnalyzer(self.generator),
            self.runner,
        )
        self.cv_service = CVService(
            self.data_manager,
            StructurePlanner(self.generator),
            ContentGenerator(self.generator),
            self.caches,
            self.runner,
        )
        self.import_service = ImportService(self.data_manager, self.generator, self.runner)

    async def start(self):
        """Start background cache cleanup; call from a running event loop"""
        self.caches.start_cleanup()
        pipeline_logger.info("Workflow service started")

    async def stop(self):
        await self.caches.stop_cleanup()
        pipeline_logger.info("Workflow service stopped")

    async def analyze(self, payload: AnalyzePayload) -> AnalysisRecord:
        return await self.analysis_service.analyze(payload)

    async def generate_cv(self, payload: GenerateCVPayload) -> CVRecord:
        return await self.cv_service.generate_cv(payload)

    async def import_profile(self, payload: ImportProfilePayload) -> Dict[str, int]:
        return await self.import_service.import_profile(payload)


# Global workflow service instance
_workflow_service_instance: Optional[WorkflowService] = None


def get_workflow_service() -> WorkflowService:
    """Return the shared WorkflowService"""
    global _workflow_service_instance
    if _workflow_service_instance is None:
        _workflow_service_instance = WorkflowService()
    return _workflow_service_instance
