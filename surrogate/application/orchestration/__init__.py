"""
Application Orchestration Package

Architectural Intent:
- Contains workflow orchestration components
- Dependency-ordered, sequential execution of image build steps
"""

from surrogate.application.orchestration.workflow import Workflow, WorkflowStep

__all__ = ["Workflow", "WorkflowStep"]
