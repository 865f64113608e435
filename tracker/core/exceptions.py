from typing import List


class TrackerError(Exception):
    """Base exception for the project tracker."""

    pass


class ProjectNotFoundError(TrackerError):
    """Raised when no project exists for the given id."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class ProjectValidationError(TrackerError):
    """Raised when a write would leave a project in an invalid state."""

    pass


class RequirementsNotMetError(TrackerError):
    """Raised when a lifecycle transition is attempted with requirements missing."""

    def __init__(self, transition: str, missing: List[str]):
        self.transition = transition
        self.missing = missing
        super().__init__(f"Cannot mark project {transition}: missing {', '.join(missing)}")
