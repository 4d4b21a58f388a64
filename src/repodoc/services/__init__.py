"""Services layer for repodoc."""

from .analysis_cache import AnalysisCache, content_key, parse_dependency_list
from .chat import build_chat_prompt
from .container import ServicesContainer, build_services, create_services
from .documentation_service import DocumentationSynthesizer
from .models import AnalysisRecord, FileAnalysisDoc, FinalDocument, ProjectInfo
from .project_service import ProjectNotFoundError, ProjectService

__all__ = [
    "AnalysisCache",
    "content_key",
    "parse_dependency_list",
    "build_chat_prompt",
    "DocumentationSynthesizer",
    "ProjectService",
    "ProjectNotFoundError",
    "ServicesContainer",
    "build_services",
    "create_services",
    "AnalysisRecord",
    "FileAnalysisDoc",
    "FinalDocument",
    "ProjectInfo",
]
