# Infrastructure Adapters Package
from .study_api import StudyApiAdapter

__all__ = ["StudyApiAdapter"]
