from .directory import Directory, NoopDirectory, RWLock, SourceError
from .garden import GardenClient, GardenError, Registry
from .cf import CFClient, CFError, new_app_directory
from .concourse import ConcourseClient, ConcourseError, new_ci_directory
