"""Notes Engine configuration module uniformly reads environment variables and provides type-safe access."""

from typing import Literal

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Notes Engine configuration, environment variables and fields are all capitalized."""
    TEMPLATE_FILE: str = Field("notes_engine/templates.yaml", description="Template source (YAML)")
    TICKETS_FILE: str = Field("notes_engine/tickets.json", description="Resolved ticket records from the fetch stage")
    OUTPUT_DIR: str = Field("notes_engine/generated", description="Build output root")
    LOG_FILE: str = Field("logs/notes_engine.log", description="Log output file")
    LOG_LEVEL: str = Field("INFO", description="Level of the log file sink")
    # A ticket that matches several siblings can be listed under each of them or only the first.
    SIBLING_POLICY: Literal["duplicate", "first_match"] = Field(
        "duplicate", description="Placement of tickets that match several sibling sections"
    )
    EMPTY_CONTAINER_POLICY: Literal["keep", "skip"] = Field(
        "keep", description="Whether a container with matched tickets but no generated child is generated"
    )
    MODULE_PREFIX: str = Field("ref_", description="File name prefix of leaf modules")
    ASSEMBLY_PREFIX: str = Field("assembly_", description="File name prefix of assemblies")
    FILE_EXTENSION: str = Field(".adoc", description="Extension of generated documents")
    MASTER_FILE_NAME: str = Field("main-generated.adoc", description="Per-variant master include file")
    SUMMARY_FILE_NAME: str = Field(
        "ref_list-of-tickets-by-component.adoc", description="Per-variant appendix listing tickets by component"
    )
    STATUS_TABLE_FILE: str = Field("status-table.json", description="Status table output file")
    WRITE_WORKERS: int = Field(4, ge=1, description="Worker pool size for writing files")
    PARALLEL_VARIANTS: bool = Field(False, description="Build the internal and external variants concurrently")
    PRIVATE_FOOTNOTE: bool = Field(False, description="Add a footnote to signatures of private tickets")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="allow",
    )


settings = Settings()


def reload_settings() -> Settings:
    """Re-read the environment and `.env`, replacing the module-level settings."""
    global settings
    settings = Settings()
    return settings


def print_config(config: Settings):
    """Output the current configuration items to the log in human-readable format to facilitate troubleshooting.

    Parameters:
        config: Settings instance, usually global settings."""
    message = ""
    message += "\n=== Notes Engine Configuration ===\n"
    message += f"Template file: {config.TEMPLATE_FILE}\n"
    message += f"Tickets file: {config.TICKETS_FILE}\n"
    message += f"Output directory: {config.OUTPUT_DIR}\n"
    message += f"Sibling policy: {config.SIBLING_POLICY}\n"
    message += f"Empty container policy: {config.EMPTY_CONTAINER_POLICY}\n"
    message += f"File names: {config.MODULE_PREFIX}*{config.FILE_EXTENSION}, {config.ASSEMBLY_PREFIX}*{config.FILE_EXTENSION}\n"
    message += f"Master file: {config.MASTER_FILE_NAME}\n"
    message += f"Appendix file: {config.SUMMARY_FILE_NAME}\n"
    message += f"Status table: {config.STATUS_TABLE_FILE}\n"
    message += f"Write workers: {config.WRITE_WORKERS}\n"
    message += f"Parallel variants: {config.PARALLEL_VARIANTS}\n"
    message += f"Private footnote: {config.PRIVATE_FOOTNOTE}\n"
    message += f"Log file: {config.LOG_FILE} ({config.LOG_LEVEL})\n"
    message += "=========================\n"
    logger.info(message)
