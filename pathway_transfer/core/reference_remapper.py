# pathway_transfer/core/reference_remapper.py
"""
Rewires the references of the duplicates in a copy set.

Every reference a duplicate inherits from its original (line endpoints,
group membership, alias targets) is resolved against the set of copied
originals: if the target was copied, the reference points at the target's
duplicate; otherwise it is unset. Nothing raises for unresolved references;
they are logged and returned in a RemapReport.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, List, NamedTuple, Optional, Tuple, TypeVar

from .copy_set import CopySet
from .errors import CorrespondenceError
from .pathway_model import (
    Anchor, DataNode, Group, Label, LineElement, LinkableTo, Pathway,
    PathwayElement, PathwayModel, Shape
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Correspondence(Generic[T]):
    """Original -> duplicate table keyed by the original's element id."""

    kind_name = "object"

    def __init__(self):
        self._table: Dict[str, Tuple[T, T]] = {}

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, original: T) -> bool:
        return self.get(original) is not None

    def register(self, original: T, duplicate: T) -> None:
        if type(original) is not type(duplicate):
            raise CorrespondenceError(
                f"Cannot pair {self.kind_name} '{original.element_id}' of kind {type(original).__name__} "
                f"with a duplicate of kind {type(duplicate).__name__}."
            )
        key = original.element_id
        if key in self._table:
            raise CorrespondenceError(f"Duplicate {self.kind_name} correspondence for id '{key}'.")
        self._table[key] = (original, duplicate)

    def get(self, original: T) -> Optional[T]:
        entry = self._table.get(original.element_id)
        if entry is None or entry[0] is not original:
            return None
        return entry[1]


class ElementCorrespondence(_Correspondence[PathwayElement]):
    kind_name = "element"


class AnchorCorrespondence(_Correspondence[Anchor]):
    kind_name = "anchor"


class LostReference(NamedTuple):
    element_id: str
    reference: str
    target_id: str


@dataclass
class RemapReport:
    floating_endpoints: List[LostReference] = field(default_factory=list)
    dropped_group_members: List[LostReference] = field(default_factory=list)
    kept_alias_refs: List[LostReference] = field(default_factory=list)
    dropped_alias_refs: List[LostReference] = field(default_factory=list)

    @property
    def has_losses(self) -> bool:
        return bool(self.floating_endpoints or self.dropped_group_members or self.dropped_alias_refs)

    def summary(self) -> str:
        return (f"{len(self.floating_endpoints)} floating endpoint(s), "
                f"{len(self.dropped_group_members)} dropped group member(s), "
                f"{len(self.dropped_alias_refs)} dropped alias reference(s), "
                f"{len(self.kept_alias_refs)} alias reference(s) kept to the destination")


def remap_references(copy_set: CopySet, destination: Optional[PathwayModel] = None) -> RemapReport:
    """
    Resolves the references of every duplicate in copy_set, in place.

    destination is the document the copy will be pasted into, if known. An
    alias whose group was not copied keeps pointing at that group when the
    destination holds it.
    """
    report = RemapReport()
    elements = ElementCorrespondence()
    anchors = AnchorCorrespondence()

    # Anchors must be paired before any endpoint that might target one is resolved
    for pair in copy_set:
        original, duplicate = pair.source_element, pair.new_element
        if isinstance(original, Pathway):
            continue
        elements.register(original, duplicate)
        if isinstance(original, LineElement):
            _register_anchors(original, duplicate, anchors)

    for pair in copy_set:
        original, duplicate = pair.source_element, pair.new_element
        match duplicate:
            case LineElement():
                _remap_line(original, duplicate, elements, anchors, report)
            case Group():
                _remap_group(original, duplicate, elements, report)
            case DataNode() if duplicate.is_alias:
                _remap_alias(original, duplicate, elements, destination, report)
            case DataNode() | Label() | Shape() | Pathway():
                pass
            case _:
                raise CorrespondenceError(f"Unsupported element kind {type(duplicate).__name__}.")

    if report.has_losses:
        logger.info(f"Remapped {len(elements)} element(s) with losses: {report.summary()}.")
    else:
        logger.debug(f"Remapped {len(elements)} element(s) and {len(anchors)} anchor(s) without losses.")
    return report


def _register_anchors(original: LineElement, duplicate: LineElement,
                      anchors: AnchorCorrespondence) -> None:
    if len(original.anchors) != len(duplicate.anchors):
        raise CorrespondenceError(
            f"Line '{original.element_id}' has {len(original.anchors)} anchor(s) "
            f"but its duplicate has {len(duplicate.anchors)}."
        )
    for anchor, anchor_copy in zip(original.anchors, duplicate.anchors):
        if anchor_copy.line is not duplicate:
            raise CorrespondenceError(
                f"Duplicate of anchor '{anchor.element_id}' is not owned by the duplicate of line "
                f"'{original.element_id}'."
            )
        anchors.register(anchor, anchor_copy)


def _resolve(target: LinkableTo, elements: ElementCorrespondence,
             anchors: AnchorCorrespondence) -> Optional[LinkableTo]:
    if isinstance(target, Anchor):
        return anchors.get(target)
    return elements.get(target)


def _remap_line(original: LineElement, duplicate: LineElement, elements: ElementCorrespondence,
                anchors: AnchorCorrespondence, report: RemapReport) -> None:
    ends = (
        ("start", original.start_point, duplicate.start_point),
        ("end", original.end_point, duplicate.end_point),
    )
    for name, point, point_copy in ends:
        target = point.element_ref
        if target is None:
            point_copy.element_ref = None
            continue
        resolved = _resolve(target, elements, anchors)
        point_copy.element_ref = resolved
        if resolved is None:
            lost = LostReference(duplicate.element_id, f"{name}.elementRef", target.element_id)
            report.floating_endpoints.append(lost)
            logger.info(
                f"Line '{duplicate.element_id}' {name} point left floating: target "
                f"'{target.element_id}' was not copied.",
                extra={"element_id": duplicate.element_id, "reference": lost.reference},
            )


def _remap_group(original: Group, duplicate: Group, elements: ElementCorrespondence,
                 report: RemapReport) -> None:
    for member in original.members:
        member_copy = elements.get(member)
        if member_copy is not None:
            duplicate.add_member(member_copy)
            continue
        lost = LostReference(duplicate.element_id, "member", member.element_id)
        report.dropped_group_members.append(lost)
        logger.warning(
            f"Group '{duplicate.element_id}' copied without member '{member.element_id}'.",
            extra={"element_id": duplicate.element_id, "reference": "member"},
        )


def _remap_alias(original: DataNode, duplicate: DataNode, elements: ElementCorrespondence,
                 destination: Optional[PathwayModel], report: RemapReport) -> None:
    group = original.alias_ref
    if group is None:
        return
    group_copy = elements.get(group)
    if group_copy is not None:
        duplicate.alias_ref = group_copy
        return

    lost = LostReference(duplicate.element_id, "aliasRef", group.element_id)
    if destination is not None and destination.has_pathway_object(group):
        duplicate.alias_ref = group
        report.kept_alias_refs.append(lost)
        logger.debug(f"Alias '{duplicate.element_id}' keeps its reference to group '{group.element_id}'.")
        return

    duplicate.alias_ref = None
    report.dropped_alias_refs.append(lost)
    logger.warning(
        f"Alias '{duplicate.element_id}' lost its reference: group '{group.element_id}' "
        f"is neither copied nor present in the destination.",
        extra={"element_id": duplicate.element_id, "reference": "aliasRef"},
    )
