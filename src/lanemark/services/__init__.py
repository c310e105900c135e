"""Service layer for board edits and templates."""

from .board_service import BoardService, BoardServiceError, CardNotFoundError, LaneNotFoundError
from .template_service import TemplateService

__all__ = [
    "BoardService",
    "BoardServiceError",
    "CardNotFoundError",
    "LaneNotFoundError",
    "TemplateService",
]
