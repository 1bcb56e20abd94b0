# Models module
from .job import JobModel, JobStatusEnum
from .job_item import JobItemModel, JobItemStatusEnum
from .word import WordDefinitionModel

__all__ = [
    "JobModel",
    "JobStatusEnum",
    "JobItemModel",
    "JobItemStatusEnum",
    "WordDefinitionModel"
]
