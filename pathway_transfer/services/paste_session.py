# pathway_transfer/services/paste_session.py
"""
Placement state for pasting transferred fragments.

Repeated pastes of data this session put on the clipboard are offset a
little further each time so they don't land on top of each other. Once
another application takes the clipboard, pastes are no longer offset.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from PyQt6.QtCore import QPointF

from ..core.copy_set import is_synthetic_info
from ..core.pathway_model import PathwayElement, PathwayModel, PathwayObject
from ..utils.config import DEFAULT_PASTE_OFFSET

logger = logging.getLogger(__name__)


@dataclass
class PastePlan:
    """The objects to insert into the target document and how far to move them."""
    objects: List[PathwayObject] = field(default_factory=list)
    shift: QPointF = field(default_factory=QPointF)

    @property
    def elements(self) -> List[PathwayElement]:
        return [obj for obj in self.objects if isinstance(obj, PathwayElement)]

    def apply_offset(self) -> None:
        dx, dy = self.shift.x(), self.shift.y()
        if dx == 0 and dy == 0:
            return
        for element in self.elements:
            element.move_by(dx, dy)


class PasteSession:
    NOT_OWNER = -1

    def __init__(self, paste_offset: float = DEFAULT_PASTE_OFFSET):
        self.paste_offset = paste_offset
        self.times_pasted = self.NOT_OWNER

    @classmethod
    def from_settings(cls, settings_manager) -> "PasteSession":
        return cls(paste_offset=settings_manager.get("paste_offset"))

    # --- Clipboard ownership ---

    def obtained_ownership(self) -> None:
        """Call after putting data on the clipboard."""
        self.times_pasted = 0

    def lost_ownership(self) -> None:
        """Call when the clipboard contents were replaced by someone else."""
        self.times_pasted = self.NOT_OWNER

    def owns_clipboard(self) -> bool:
        return self.times_pasted != self.NOT_OWNER

    # --- Placement ---

    def next_paste_shift(self) -> QPointF:
        if not self.owns_clipboard():
            return QPointF(0.0, 0.0)
        self.times_pasted += 1
        offset = self.times_pasted * self.paste_offset
        return QPointF(offset, offset)

    @staticmethod
    def shift_to_cursor(elements: Iterable[PathwayObject], cursor: QPointF) -> QPointF:
        """
        Returns the shift that moves the top-left corner of the elements'
        bounding box onto cursor. Metadata elements have no bounds and are
        ignored; with nothing to place, the shift is zero.
        """
        left = top = None
        for element in elements:
            if not isinstance(element, PathwayElement):
                continue
            x, y, _, _ = element.get_bounds()
            left = x if left is None else min(left, x)
            top = y if top is None else min(top, y)
        if left is None:
            return QPointF(0.0, 0.0)
        return QPointF(cursor.x() - left, cursor.y() - top)

    def prepare_paste(self, fragment: PathwayModel, cursor: Optional[QPointF] = None) -> PastePlan:
        """
        Lists what to insert from fragment and where. A placeholder metadata
        element is left out; a real one is kept. With a cursor the fragment
        is placed there, otherwise it gets the repeated-paste offset.
        """
        objects: List[PathwayObject] = []
        for obj in fragment.get_pathway_objects():
            if obj is fragment.pathway and is_synthetic_info(obj):
                logger.debug("Leaving out placeholder metadata element of the pasted fragment.")
                continue
            objects.append(obj)

        if cursor is not None:
            shift = self.shift_to_cursor(objects, cursor)
        else:
            shift = self.next_paste_shift()
        logger.debug(f"Paste of {len(objects)} object(s) planned with shift ({shift.x()}, {shift.y()}).")
        return PastePlan(objects, shift)
