"""
Domain models — Pydantic types for aiops.

All models are re-exported here for convenient access:

    from aiops.core.models import DetectedStack, Target, Plan, AiopsConfig
"""

from aiops.core.models.plan import Diff, Plan
from aiops.core.models.project import (
    MATURITY_ACTIVE,
    MATURITY_BOOTSTRAP,
    MATURITY_MATURE,
    AiopsConfig,
    PathsConfig,
    ProjectInfo,
)
from aiops.core.models.stack import (
    BuildInfo,
    DetectedStack,
    Framework,
    Language,
    MCPServer,
)
from aiops.core.models.target import Target
from aiops.core.models.template import RenderedArtifact, TemplateNode

__all__ = [
    "MATURITY_ACTIVE",
    "MATURITY_BOOTSTRAP",
    "MATURITY_MATURE",
    # project.py
    "AiopsConfig",
    # stack.py
    "BuildInfo",
    "DetectedStack",
    # plan.py
    "Diff",
    "Framework",
    "Language",
    "MCPServer",
    "PathsConfig",
    "Plan",
    "ProjectInfo",
    # template.py
    "RenderedArtifact",
    # target.py
    "Target",
    "TemplateNode",
]
