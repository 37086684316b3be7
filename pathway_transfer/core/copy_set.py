# pathway_transfer/core/copy_set.py
"""
Builds the copy set of a selection: one (original, duplicate) pair per
selected element, with the duplicates collected in a fresh fragment model.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..utils.config import INFO_DATASOURCE
from .pathway_model import Anchor, LineElement, Pathway, PathwayModel, PathwayObject

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class CopyElement:
    """
    An original element paired with its duplicate. Until references are
    remapped, source_element is the only link from a duplicate back to what
    its references pointed at.
    """
    source_element: PathwayObject
    new_element: PathwayObject


@dataclass(eq=False)
class CopySet:
    source: PathwayModel
    fragment: PathwayModel
    elements: List[CopyElement] = field(default_factory=list)
    synthetic_info: Optional[Pathway] = None

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)

    @property
    def has_synthetic_info(self) -> bool:
        return self.synthetic_info is not None


def is_synthetic_info(pathway: Optional[Pathway]) -> bool:
    """True if pathway is the placeholder metadata added to a copy that had none."""
    return pathway is not None and pathway.source == INFO_DATASOURCE


def create_synthetic_info() -> Pathway:
    return Pathway(source=INFO_DATASOURCE)


def build_copy_set(source: PathwayModel, selection: Iterable[PathwayObject]) -> CopySet:
    """
    Duplicates each selected element into a new fragment model.

    Selection order is preserved and repeated entries collapse to one pair.
    Anchors are not copied on their own: they are duplicated with their line.
    If the selection holds no metadata element, a placeholder one tagged
    with INFO_DATASOURCE is added to the fragment so the payload still forms
    a complete document. The source model is not modified.
    """
    fragment = PathwayModel()
    copy_set = CopySet(source=source, fragment=fragment)
    seen = set()

    for element in selection:
        if id(element) in seen:
            continue
        seen.add(id(element))

        if isinstance(element, Anchor):
            logger.debug(f"Skipping anchor '{element.element_id}' selected without its line.")
            continue
        if not source.has_pathway_object(element):
            raise ValueError(
                f"Selected element '{element.element_id}' does not belong to the source pathway model."
            )

        duplicate = element.copy()
        if not isinstance(element, Pathway):
            # Keep the original ids where possible so the payload stays readable
            duplicate.element_id = element.element_id
            if isinstance(element, LineElement):
                for anchor, anchor_copy in zip(element.anchors, duplicate.anchors):
                    anchor_copy.element_id = anchor.element_id
        fragment.add(duplicate)
        copy_set.elements.append(CopyElement(element, duplicate))

    if fragment.pathway is None:
        copy_set.synthetic_info = fragment.add(create_synthetic_info())
        logger.debug("No metadata element selected; added a placeholder to the copy.")

    logger.info(f"Built copy set with {len(copy_set.elements)} element(s) from {source!r}.")
    return copy_set
