"""Logging utilities"""

import sys
from pathlib import Path
from loguru import logger
from .config import get_settings

settings = get_settings()


def setup_logger():
    """Configure the logging system"""
    # Drop the default handler
    logger.remove()

    log_dir = Path(settings.app.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    console_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss} | "
        "{level: <8} | "
        "{extra[name]}:{function}:{line} | "
        "{message}"
    )

    logger.configure(extra={"name": "app"})

    logger.add(
        sys.stdout,
        format=console_format,
        level=settings.app.log_level,
        colorize=True,
        backtrace=True,
        diagnose=settings.app.debug
    )

    # Everything
    logger.add(
        log_dir / "app.log",
        format=file_format,
        level="DEBUG",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        backtrace=True,
        diagnose=False
    )

    logger.add(
        log_dir / "error.log",
        format=file_format,
        level="ERROR",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        backtrace=True,
        diagnose=False
    )

    # Pipeline stages and task transitions
    logger.add(
        log_dir / "pipeline.log",
        format=file_format,
        level="INFO",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        filter=lambda record: record["extra"].get("name") == "pipeline"
    )

    # Generator requests and fallbacks
    logger.add(
        log_dir / "llm.log",
        format=file_format,
        level="INFO",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        filter=lambda record: record["extra"].get("name") == "llm"
    )

    return logger


def get_logger(name: str = None):
    """Return a bound logger"""
    if name:
        return logger.bind(name=name)
    return logger


setup_logger()

app_logger = get_logger("app")
pipeline_logger = get_logger("pipeline")
llm_logger = get_logger("llm")
api_logger = get_logger("api")
