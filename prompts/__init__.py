from __future__ import annotations  # Re-export prompt catalogue

from . import coding, evaluation, question, resume

__all__ = ["coding", "evaluation", "question", "resume"]
