from .project import Project, ProjectType

__all__ = [
    "Project", "ProjectType",
]
