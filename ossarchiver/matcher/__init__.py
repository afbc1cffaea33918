"""
Artifact matcher module.

Resolves configured (folder, filename pattern) entries against a workspace
into ordered groups of concrete files.
"""

from .matcher import (
    ArtifactSpec,
    ResolvedArtifactGroup,
    PathCheck,
    PathSeverity,
    check_artifact_path,
    compile_ant_pattern,
    list_groups,
    list_matching_files,
    resolve_artifacts,
)

__all__ = [
    "ArtifactSpec",
    "ResolvedArtifactGroup",
    "PathCheck",
    "PathSeverity",
    "check_artifact_path",
    "compile_ant_pattern",
    "list_groups",
    "list_matching_files",
    "resolve_artifacts",
]
