"""LTI Outcomes client and MCP server.

Report, read and delete learner scores on an LTI 1.1 platform through the
Basic Outcomes service.
"""

__version__ = "0.1.0"

from .core.clients.outcomes import delete_score, is_outcomes_payload, post_score, read_score
from .core.models import BasicResult, LisResult

__all__ = [
    "BasicResult",
    "LisResult",
    "delete_score",
    "is_outcomes_payload",
    "post_score",
    "read_score",
]
