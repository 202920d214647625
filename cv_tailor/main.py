"""CV Tailor application entry point"""

import argparse
import asyncio
import json
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .core.data_manager import get_data_manager
from .core.errors import PipelineError
from .integrations.llm_api import close_llm_api
from .models.profile import ProfileSnapshot
from .models.task import (
    AnalysisRecord, AnalyzePayload, CVRecord, FileType, GenerateCVPayload, ImportProfilePayload,
    TaskModel, RequiredText
)
from .services.workflow_service import WorkflowService, get_workflow_service
from .utils.config import get_settings
from .utils.logger import api_logger, app_logger

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    workflow_service = get_workflow_service()
    await workflow_service.start()
    try:
        yield
    finally:
        await workflow_service.stop()
        await close_llm_api()


# FastAPI application
app = FastAPI(
    title=settings.app.name,
    description="Tailors professional profiles into job-specific CVs",
    version=settings.app.version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== Request models ====================

class AnalysisRequest(TaskModel):
    """Request to analyze a profile against a job description"""
    user_id: RequiredText
    job_description_id: RequiredText
    job_description: RequiredText
    analysis_result_id: Optional[str] = None


class CVRequest(TaskModel):
    """Request to generate a tailored CV"""
    user_id: RequiredText
    job_description_id: RequiredText
    analysis_result_id: RequiredText
    job_description: RequiredText
    cv_id: Optional[str] = None


async def run_in_background(label: str, task: Callable[[], Awaitable[object]]):
    """Run a task after the response; its failure is already persisted on the record"""
    try:
        await task()
    except PipelineError as e:
        api_logger.error(f"{label} failed: {e}")


# ==================== API routes ====================

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "name": settings.app.name,
        "version": settings.app.version,
        "timestamp": datetime.now().isoformat()
    }


@app.post("/api/analysis", status_code=202)
async def create_analysis(request: AnalysisRequest, background_tasks: BackgroundTasks,
                          workflow_service: WorkflowService = Depends(get_workflow_service)):
    """Create a pending analysis record and schedule the analyze task"""
    payload = AnalyzePayload(
        user_id=request.user_id,
        job_description_id=request.job_description_id,
        job_description=request.job_description,
        analysis_result_id=request.analysis_result_id or str(uuid.uuid4()),
    )
    await workflow_service.data_manager.create_analysis_record(
        payload.analysis_result_id, payload.user_id, payload.job_description_id
    )
    background_tasks.add_task(run_in_background, f"analysis {payload.analysis_result_id}",
                              lambda: workflow_service.analyze(payload))
    api_logger.info(f"Scheduled analysis {payload.analysis_result_id} for user {payload.user_id}")
    return {"id": payload.analysis_result_id, "status": "pending"}


@app.get("/api/analysis/{analysis_id}", response_model=AnalysisRecord)
async def get_analysis(analysis_id: str, workflow_service: WorkflowService = Depends(get_workflow_service)):
    record = await workflow_service.data_manager.get_analysis_record(analysis_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return record


@app.post("/api/cv", status_code=202)
async def create_cv(request: CVRequest, background_tasks: BackgroundTasks,
                    workflow_service: WorkflowService = Depends(get_workflow_service)):
    """Create a pending CV record and schedule the generate-CV task"""
    payload = GenerateCVPayload(
        user_id=request.user_id,
        job_description_id=request.job_description_id,
        analysis_result_id=request.analysis_result_id,
        job_description=request.job_description,
        cv_id=request.cv_id or str(uuid.uuid4()),
    )
    await workflow_service.data_manager.create_cv_record(
        payload.cv_id, payload.user_id, payload.job_description_id, payload.analysis_result_id
    )
    background_tasks.add_task(run_in_background, f"CV {payload.cv_id}",
                              lambda: workflow_service.generate_cv(payload))
    api_logger.info(f"Scheduled CV {payload.cv_id} for user {payload.user_id}")
    return {"id": payload.cv_id, "status": "pending"}


@app.get("/api/cv/{cv_id}", response_model=CVRecord)
async def get_cv(cv_id: str, workflow_service: WorkflowService = Depends(get_workflow_service)):
    record = await workflow_service.data_manager.get_cv_record(cv_id)
    if record is None:
        raise HTTPException(status_code=404, detail="CV not found")
    return record


@app.post("/api/profile/import", status_code=202)
async def import_profile(payload: ImportProfilePayload, background_tasks: BackgroundTasks,
                         workflow_service: WorkflowService = Depends(get_workflow_service)):
    """Schedule a destructive profile import"""
    background_tasks.add_task(run_in_background, f"profile import for {payload.user_id}",
                              lambda: workflow_service.import_profile(payload))
    api_logger.info(f"Scheduled profile import for user {payload.user_id}")
    return {"userId": payload.user_id, "status": "scheduled"}


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    app_logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "timestamp": datetime.now().isoformat()}
    )


# ==================== Command line ====================

def _read_text(value: str) -> str:
    """Inline text, or the content of a file when value is an existing path"""
    try:
        path = Path(value)
        if path.is_file():
            return path.read_text(encoding="utf-8")
    except OSError:
        pass
    return value


async def cli_analyze(args):
    workflow_service = get_workflow_service()
    payload = AnalyzePayload(
        user_id=args.user_id,
        job_description_id=args.job_description_id,
        job_description=_read_text(args.job_description),
        analysis_result_id=args.analysis_id or str(uuid.uuid4()),
    )
    await workflow_service.data_manager.create_analysis_record(
        payload.analysis_result_id, payload.user_id, payload.job_description_id
    )
    try:
        record = await workflow_service.analyze(payload)
    except PipelineError as e:
        print(f"Analysis failed: {e}")
        return
    finally:
        await close_llm_api()

    print(f"Analysis {record.id}: match score {record.match_score:g}")
    print(f"Missing skills: {', '.join(record.missing_skills) or 'none'}")
    for gap in record.gaps:
        print(f"  [{gap.severity.value}] {gap.title}")


async def cli_generate_cv(args):
    workflow_service = get_workflow_service()
    payload = GenerateCVPayload(
        user_id=args.user_id,
        job_description_id=args.job_description_id,
        analysis_result_id=args.analysis_id,
        job_description=_read_text(args.job_description),
        cv_id=args.cv_id or str(uuid.uuid4()),
    )
    await workflow_service.data_manager.create_cv_record(
        payload.cv_id, payload.user_id, payload.job_description_id, payload.analysis_result_id
    )
    try:
        record = await workflow_service.generate_cv(payload)
    except PipelineError as e:
        print(f"CV generation failed: {e}")
        return
    finally:
        await close_llm_api()

    print(record.cv_data.model_dump_json(by_alias=True, indent=2))


async def cli_import_profile(args):
    workflow_service = get_workflow_service()
    file_content = Path(args.file).read_text(encoding="utf-8") if args.file else None
    payload = ImportProfilePayload(
        user_id=args.user_id,
        file_url=args.file_url,
        file_content=file_content,
        file_type=FileType(args.file_type),
        file_name=Path(args.file).name if args.file else None,
    )
    try:
        counts = await workflow_service.import_profile(payload)
    except PipelineError as e:
        print(f"Import failed: {e}")
        return
    finally:
        await close_llm_api()

    print(f"Imported profile for {args.user_id}: {json.dumps(counts)}")


async def cli_load_profile(args):
    """Store a profile snapshot from a JSON file"""
    try:
        data = json.loads(Path(args.path).read_text(encoding="utf-8"))
        snapshot = ProfileSnapshot.model_validate({**data, "userId": args.user_id})
    except (OSError, ValueError, ValidationError) as e:
        print(f"Could not read profile: {e}")
        return
    counts = await get_data_manager().save_profile(snapshot)
    print(f"Stored profile for {args.user_id}: {json.dumps(counts)}")


def cli_init_db(args):
    data_manager = get_data_manager()
    print(f"Database ready: {data_manager.db_path}")


def main():
    parser = argparse.ArgumentParser(description="CV Tailor: job-specific CV generation")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    server_parser = subparsers.add_parser("server", help="Start the API server")
    server_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    server_parser.add_argument("--port", type=int, default=8000, help="Port")
    server_parser.add_argument("--reload", action="store_true", help="Auto-reload for development")

    subparsers.add_parser("init-db", help="Create the database tables")

    load_parser = subparsers.add_parser("load-profile", help="Store a profile from a JSON file")
    load_parser.add_argument("user_id", help="User id")
    load_parser.add_argument("path", help="Profile JSON file")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a profile against a job description")
    analyze_parser.add_argument("user_id", help="User id")
    analyze_parser.add_argument("job_description", help="Job description text or file")
    analyze_parser.add_argument("--job-description-id", default="cli", help="Job description id")
    analyze_parser.add_argument("--analysis-id", help="Analysis id (generated when omitted)")

    cv_parser = subparsers.add_parser("generate-cv", help="Generate a tailored CV")
    cv_parser.add_argument("user_id", help="User id")
    cv_parser.add_argument("analysis_id", help="Completed analysis id")
    cv_parser.add_argument("job_description", help="Job description text or file")
    cv_parser.add_argument("--job-description-id", default="cli", help="Job description id")
    cv_parser.add_argument("--cv-id", help="CV id (generated when omitted)")

    import_parser = subparsers.add_parser("import-profile", help="Import a profile from a CV document")
    import_parser.add_argument("user_id", help="User id")
    import_parser.add_argument("file_url", help="URL of the CV document")
    import_parser.add_argument("--file-type", choices=[t.value for t in FileType], default=FileType.PDF.value)
    import_parser.add_argument("--file", help="Local markdown file used instead of downloading")

    args = parser.parse_args()

    if args.command == "server":
        import uvicorn
        uvicorn.run(
            "cv_tailor.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload
        )
    elif args.command == "init-db":
        cli_init_db(args)
    elif args.command == "load-profile":
        asyncio.run(cli_load_profile(args))
    elif args.command == "analyze":
        asyncio.run(cli_analyze(args))
    elif args.command == "generate-cv":
        asyncio.run(cli_generate_cv(args))
    elif args.command == "import-profile":
        asyncio.run(cli_import_profile(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
