"""
Publishing: readiness gates and the two-step publish wizard.
"""

from .readiness import PublicationReadiness, ReadinessVerdict, RequirementCheck, evaluate
from .workflow import PublicationWorkflow, WorkflowStep

__all__ = [
    'PublicationReadiness',
    'PublicationWorkflow',
    'ReadinessVerdict',
    'RequirementCheck',
    'WorkflowStep',
    'evaluate',
]
