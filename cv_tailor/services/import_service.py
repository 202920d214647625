"""Profile import from an uploaded CV document"""

from typing import Dict, Optional

import httpx
from pydantic import ValidationError

from .task_runner import TaskRunner, pipeline_stage
from ..core.data_manager import DataManager
from ..core.errors import GenerationError
from ..integrations.document_extractor import extract_document_text
from ..integrations.llm_api import StructuredGenerator
from ..models.profile_import import ImportProfileData
from ..models.task import ImportProfilePayload
from ..utils.config import get_settings
from ..utils.logger import app_logger

TASK_NAME = "import-profile"

SYSTEM_PROMPT = (
    "You are an expert CV parser. You extract every piece of information from a CV "
    "into structured data, exactly as written, without inventing anything."
)

IMPORT_PROMPT = """Extract all information from this CV document.

CV content:
{text}

Requirements:
- Personal information: name, email, phone, location, address, city, country, postal code,
  profile image URL, personal summary
- Work experiences: ALL of them, with company, position, start/end dates (YYYY-MM-DD), current flag, description
- Skills: EVERY skill mentioned anywhere (skills sections, experience, projects, education, summary)
  * category MUST be exactly one of "Programming Language", "Technical", "Soft Skills"
  * proficiencyLevel MUST be exactly one of "Expert", "Advanced", "Intermediate", "Beginner", or null
- Education: ALL entries with institution, degree, field of study, dates
- Languages: ALL languages with their proficiency level
- Use empty lists when a section is absent
"""


class ImportService:
    """Replaces a user's profile with data extracted from a CV file"""

    def __init__(self, data_manager: DataManager, generator: StructuredGenerator, runner: TaskRunner,
                 http_client: Optional[httpx.AsyncClient] = None, max_attempts: Optional[int] = None):
        self.data_manager = data_manager
        self.generator = generator
        self.runner = runner
        self.http_client = http_client
        self.max_attempts = max_attempts or get_settings().pipeline.import_max_attempts

    async def _run_once(self, payload: ImportProfilePayload) -> Dict[str, int]:
        with pipeline_stage("extract-text"):
            text = await extract_document_text(payload.file_type, payload.file_url, payload.file_content,
                                               self.http_client)

        with pipeline_stage("extract-profile"):
            try:
                data = await self.generator.generate(
                    IMPORT_PROMPT.format(text=text), ImportProfileData, system_prompt=SYSTEM_PROMPT
                )
            except ValidationError as e:
                raise GenerationError(f"Extracted profile does not match schema: {e.error_count()} errors")

        with pipeline_stage("store-profile"):
            counts = await self.data_manager.replace_profile(payload.user_id, data)

        app_logger.info(f"Imported profile for user {payload.user_id} from {payload.file_name or payload.file_url}: {counts}")
        return counts

    async def import_profile(self, payload: ImportProfilePayload) -> Dict[str, int]:
        """Extract, then delete-and-insert the whole profile; returns imported item counts"""
        return await self.runner.run(
            TASK_NAME,
            payload.user_id,
            lambda: self._run_once(payload),
            max_attempts=self.max_attempts,
        )
