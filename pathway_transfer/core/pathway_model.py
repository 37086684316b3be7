# pathway_transfer/core/pathway_model.py
"""
Defines the object model of a pathway diagram.

These data classes are the document graph the transfer engine copies:
data nodes, labels, shapes and groups (shaped elements), interactions and
graphical lines (line elements) with their owned anchors, and the single
metadata element of a document. Elements reference each other by object
identity; every element belongs to at most one PathwayModel at a time.

The model has no knowledge of the GUI toolkit.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, fields
from copy import deepcopy
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple, Union

from ..utils.config import ELEMENT_ID_PREFIX

logger = logging.getLogger(__name__)

# Fields carrying identity, ownership or references are excluded from get_data()
# and are never copied by copy().
_TRANSIENT = {"transient": True}


def _transient(default: Any = None) -> Any:
    return field(default=default, repr=False, metadata=_TRANSIENT)


def _transient_list() -> Any:
    return field(default_factory=list, repr=False, metadata=_TRANSIENT)


# ==============================================================================
# Enumerations
# ==============================================================================

class ObjectType(Enum):
    """The closed set of element kinds a pathway document can hold."""
    PATHWAY = "Pathway"
    DATANODE = "DataNode"
    LABEL = "Label"
    SHAPE = "Shape"
    GROUP = "Group"
    INTERACTION = "Interaction"
    GRAPHICAL_LINE = "GraphicalLine"
    ANCHOR = "Anchor"


class DataNodeType(Enum):
    GENE_PRODUCT = "GeneProduct"
    DNA = "DNA"
    RNA = "RNA"
    PROTEIN = "Protein"
    METABOLITE = "Metabolite"
    COMPLEX = "Complex"
    PATHWAY = "Pathway"
    ALIAS = "Alias"
    UNDEFINED = "Undefined"

    @classmethod
    def from_name(cls, name: str) -> "DataNodeType":
        for member in cls:
            if member.value.lower() == name.lower():
                return member
        logger.warning(f"Unknown data node type '{name}', using '{cls.UNDEFINED.value}'.")
        return cls.UNDEFINED


class GroupType(Enum):
    GROUP = "Group"
    TRANSPARENT = "Transparent"
    COMPLEX = "Complex"
    PATHWAY = "Pathway"
    ANALOG = "Analog"
    PARALOG = "Paralog"

    @classmethod
    def from_name(cls, name: str) -> "GroupType":
        for member in cls:
            if member.value.lower() == name.lower():
                return member
        logger.warning(f"Unknown group type '{name}', using '{cls.GROUP.value}'.")
        return cls.GROUP


# ==============================================================================
# Value Objects
# ==============================================================================

@dataclass
class Xref:
    """External database reference of a data node, interaction or group."""
    identifier: str = ""
    data_source: str = ""


@dataclass(eq=False)
class LinePoint:
    """
    A waypoint of a line. Only the first and last point of a line may be
    attached (element_ref) to a shaped element or to an anchor.
    """
    x: float = 0.0
    y: float = 0.0
    arrow_head: str = "Undirected"
    # Attachment position relative to the target's bounds, -1..1
    rel_x: float = 0.0
    rel_y: float = 0.0
    element_ref: Optional[LinkableTo] = _transient()

    def get_data(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "arrow_head": self.arrow_head,
                "rel_x": self.rel_x, "rel_y": self.rel_y}

    def copy(self) -> "LinePoint":
        return LinePoint(**self.get_data())


# ==============================================================================
# Pathway Objects
# ==============================================================================

@dataclass(eq=False)
class PathwayObject:
    """Base of everything a PathwayModel can own."""
    OBJECT_TYPE: ClassVar[ObjectType]

    element_id: str = _transient("")
    pathway_model: Optional[PathwayModel] = _transient()

    def get_data(self) -> Dict[str, Any]:
        """
        Returns the property values of this object: everything except its
        identity, its owner and its references to other objects.
        """
        data = {}
        for f in fields(self):
            if f.metadata.get("transient"):
                continue
            data[f.name] = deepcopy(getattr(self, f.name))
        return data

    def copy(self) -> "PathwayObject":
        """
        Returns a detached duplicate carrying the same property values. The
        duplicate has no id, no owner and no references.
        """
        return type(self)(**self.get_data())


@dataclass(eq=False)
class Pathway(PathwayObject):
    """The metadata element of a document (title, organism, source, ...)."""
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.PATHWAY

    title: str = ""
    organism: str = ""
    source: str = ""
    version: str = ""
    license: str = ""
    description: str = ""
    board_width: float = 0.0
    board_height: float = 0.0


@dataclass(eq=False)
class PathwayElement(PathwayObject):
    """A graph element that can be a member of a group."""
    group_ref: Optional[Group] = _transient()
    dynamic_properties: Dict[str, str] = field(default_factory=dict)

    def get_bounds(self) -> Tuple[float, float, float, float]:
        """Returns (left, top, width, height)."""
        raise NotImplementedError

    def move_by(self, dx: float, dy: float) -> None:
        raise NotImplementedError


@dataclass(eq=False)
class ShapedElement(PathwayElement):
    text_label: str = ""
    center_x: float = 0.0
    center_y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    text_color: str = "000000"
    fill_color: str = "ffffff"
    border_color: str = "000000"
    shape_type: str = "Rectangle"

    def get_bounds(self) -> Tuple[float, float, float, float]:
        return (self.center_x - self.width / 2, self.center_y - self.height / 2,
                self.width, self.height)

    def move_by(self, dx: float, dy: float) -> None:
        self.center_x += dx
        self.center_y += dy


@dataclass(eq=False)
class DataNode(ShapedElement):
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.DATANODE

    type: DataNodeType = DataNodeType.GENE_PRODUCT
    xref: Optional[Xref] = None
    # Only meaningful for alias nodes: the group this node stands in for.
    alias_ref: Optional[Group] = _transient()

    @property
    def is_alias(self) -> bool:
        return self.type is DataNodeType.ALIAS


@dataclass(eq=False)
class Label(ShapedElement):
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.LABEL

    href: str = ""


@dataclass(eq=False)
class Shape(ShapedElement):
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.SHAPE

    rotation: float = 0.0


@dataclass(eq=False)
class Group(ShapedElement):
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.GROUP

    type: GroupType = GroupType.GROUP
    xref: Optional[Xref] = None
    members: List[PathwayElement] = _transient_list()

    def add_member(self, element: PathwayElement) -> None:
        """Adds element to this group, moving it out of any previous group."""
        if element is self:
            raise ValueError(f"Group '{self.element_id}' cannot be a member of itself.")
        if self.pathway_model is None or element.pathway_model is not self.pathway_model:
            raise ValueError(
                f"Group '{self.element_id}' and element '{element.element_id}' "
                f"must belong to the same pathway model."
            )
        if element.group_ref is self:
            return
        outer = self.group_ref
        while outer is not None:
            if outer is element:
                raise ValueError(
                    f"Group '{element.element_id}' cannot be a member of '{self.element_id}', "
                    f"which it already contains."
                )
            outer = outer.group_ref
        if element.group_ref is not None:
            element.group_ref.remove_member(element)
        self.members.append(element)
        element.group_ref = self

    def remove_member(self, element: PathwayElement) -> None:
        if element in self.members:
            self.members.remove(element)
            element.group_ref = None

    def has_member(self, element: PathwayElement) -> bool:
        return element in self.members


@dataclass(eq=False)
class Anchor(PathwayObject):
    """A connection point owned by a line; lives and dies with that line."""
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.ANCHOR

    # Relative position along the owning line, 0.0 (start) to 1.0 (end)
    position: float = 0.5
    shape_type: str = "None"
    line: Optional[LineElement] = _transient()


@dataclass(eq=False)
class LineElement(PathwayElement):
    """Base for interactions and graphical lines."""
    points: List[LinePoint] = field(
        default_factory=lambda: [LinePoint(), LinePoint()], repr=False, metadata=_TRANSIENT
    )
    anchors: List[Anchor] = _transient_list()
    line_color: str = "000000"
    line_style: str = "Solid"
    line_width: float = 1.0
    connector_type: str = "Straight"

    @property
    def start_point(self) -> LinePoint:
        return self.points[0]

    @property
    def end_point(self) -> LinePoint:
        return self.points[-1]

    @property
    def start_element_ref(self) -> Optional[LinkableTo]:
        return self.start_point.element_ref

    @start_element_ref.setter
    def start_element_ref(self, target: Optional[LinkableTo]) -> None:
        self.start_point.element_ref = target

    @property
    def end_element_ref(self) -> Optional[LinkableTo]:
        return self.end_point.element_ref

    @end_element_ref.setter
    def end_element_ref(self, target: Optional[LinkableTo]) -> None:
        self.end_point.element_ref = target

    def add_anchor(self, position: float = 0.5, shape_type: str = "None",
                   element_id: str = "") -> Anchor:
        anchor = Anchor(element_id=element_id, position=position, shape_type=shape_type)
        anchor.line = self
        self.anchors.append(anchor)
        if self.pathway_model is not None:
            self.pathway_model._register_anchor(anchor)
        return anchor

    def remove_anchor(self, anchor: Anchor) -> None:
        if anchor not in self.anchors:
            return
        self.anchors.remove(anchor)
        if self.pathway_model is not None:
            self.pathway_model._unregister_anchor(anchor)
        anchor.line = None

    def get_data(self) -> Dict[str, Any]:
        data = super().get_data()
        data["points"] = [point.get_data() for point in self.points]
        data["anchors"] = [anchor.get_data() for anchor in self.anchors]
        return data

    def copy(self) -> "LineElement":
        duplicate = type(self)(**super().get_data())
        duplicate.points = [point.copy() for point in self.points]
        for anchor in self.anchors:
            duplicate.add_anchor(anchor.position, anchor.shape_type)
        return duplicate

    def get_bounds(self) -> Tuple[float, float, float, float]:
        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return (min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def move_by(self, dx: float, dy: float) -> None:
        for point in self.points:
            point.x += dx
            point.y += dy


@dataclass(eq=False)
class Interaction(LineElement):
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.INTERACTION

    xref: Optional[Xref] = None


@dataclass(eq=False)
class GraphicalLine(LineElement):
    OBJECT_TYPE: ClassVar[ObjectType] = ObjectType.GRAPHICAL_LINE


# What a line endpoint may attach to
LinkableTo = Union[ShapedElement, Anchor]


# ==============================================================================
# Document
# ==============================================================================

class PathwayModel:
    """
    A pathway document: one optional metadata element plus an ordered set of
    graph elements. Anchors are registered through their owning lines so they
    can be looked up as endpoint targets.
    """

    def __init__(self, pathway: Optional[Pathway] = None):
        self.pathway: Optional[Pathway] = None
        self._elements: Dict[str, PathwayElement] = {}
        self._anchors: Dict[str, Anchor] = {}
        if pathway is not None:
            self.add(pathway)

    def __iter__(self) -> Iterator[PathwayElement]:
        return iter(list(self._elements.values()))

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, obj: object) -> bool:
        return isinstance(obj, PathwayObject) and self.has_pathway_object(obj)

    def __repr__(self) -> str:
        title = self.pathway.title if self.pathway else None
        return f"PathwayModel(title={title!r}, elements={len(self._elements)}, anchors={len(self._anchors)})"

    # --- Identity ---

    def _is_id_taken(self, element_id: str) -> bool:
        return element_id in self._elements or element_id in self._anchors

    def get_unique_element_id(self) -> str:
        while True:
            candidate = f"{ELEMENT_ID_PREFIX}{uuid.uuid4().hex[:8]}"
            if not self._is_id_taken(candidate):
                return candidate

    # --- Adding and removing ---

    def add(self, obj: PathwayObject) -> PathwayObject:
        """
        Adopts obj into this document. An element whose id is empty or already
        used here is given a fresh unique id. Adding a Pathway replaces the
        current metadata element.
        """
        match obj:
            case Pathway():
                if self.pathway is not None and self.pathway is not obj:
                    logger.debug(f"Replacing metadata element '{self.pathway.title}' of {self!r}.")
                    self.pathway.pathway_model = None
                obj.pathway_model = self
                self.pathway = obj
            case Anchor():
                raise ValueError("Anchors are added through their owning line (LineElement.add_anchor).")
            case PathwayElement():
                if obj.pathway_model is self:
                    return obj
                if obj.pathway_model is not None:
                    raise ValueError(f"Element '{obj.element_id}' already belongs to another pathway model.")
                if not obj.element_id or self._is_id_taken(obj.element_id):
                    obj.element_id = self.get_unique_element_id()
                obj.pathway_model = self
                self._elements[obj.element_id] = obj
                if isinstance(obj, LineElement):
                    for anchor in obj.anchors:
                        self._register_anchor(anchor)
            case _:
                raise TypeError(f"Cannot add object of type {type(obj).__name__} to a pathway model.")
        return obj

    def remove(self, element: PathwayElement) -> None:
        """Detaches element and unlinks every reference to it (or to its anchors)."""
        if self._elements.get(element.element_id) is not element:
            raise ValueError(f"Element '{element.element_id}' does not belong to this pathway model.")

        if isinstance(element, LineElement):
            for anchor in element.anchors:
                self._unregister_anchor(anchor)
        for point in self._iter_end_points():
            if point.element_ref is element:
                point.element_ref = None
        if isinstance(element, Group):
            for member in list(element.members):
                element.remove_member(member)
            for node in self.data_nodes:
                if node.alias_ref is element:
                    node.alias_ref = None
        if element.group_ref is not None:
            element.group_ref.remove_member(element)

        del self._elements[element.element_id]
        element.pathway_model = None
        logger.debug(f"Removed element '{element.element_id}' from {self!r}.")

    def _register_anchor(self, anchor: Anchor) -> None:
        if not anchor.element_id or self._is_id_taken(anchor.element_id):
            anchor.element_id = self.get_unique_element_id()
        anchor.pathway_model = self
        self._anchors[anchor.element_id] = anchor

    def _unregister_anchor(self, anchor: Anchor) -> None:
        if self._anchors.get(anchor.element_id) is anchor:
            del self._anchors[anchor.element_id]
        anchor.pathway_model = None
        for point in self._iter_end_points():
            if point.element_ref is anchor:
                point.element_ref = None

    def _iter_end_points(self) -> Iterator[LinePoint]:
        for line in self.lines:
            yield line.start_point
            yield line.end_point

    # --- Lookup ---

    def has_pathway_object(self, obj: PathwayObject) -> bool:
        match obj:
            case Pathway():
                return obj is self.pathway
            case Anchor():
                return self._anchors.get(obj.element_id) is obj
            case PathwayElement():
                return self._elements.get(obj.element_id) is obj
        return False

    def get_element(self, element_id: str) -> Optional[PathwayElement]:
        return self._elements.get(element_id)

    def get_linkable(self, element_id: str) -> Optional[Union[PathwayElement, Anchor]]:
        """Looks up an element or an anchor by id."""
        return self._elements.get(element_id) or self._anchors.get(element_id)

    def get_elements(self, object_type: ObjectType) -> List[PathwayElement]:
        return [e for e in self._elements.values() if e.OBJECT_TYPE is object_type]

    def get_pathway_objects(self) -> List[PathwayObject]:
        """Returns the metadata element (if any) followed by all elements."""
        objects: List[PathwayObject] = [self.pathway] if self.pathway is not None else []
        objects.extend(self._elements.values())
        return objects

    @property
    def anchors(self) -> List[Anchor]:
        return list(self._anchors.values())

    @property
    def data_nodes(self) -> List[DataNode]:
        return [e for e in self._elements.values() if isinstance(e, DataNode)]

    @property
    def groups(self) -> List[Group]:
        return [e for e in self._elements.values() if isinstance(e, Group)]

    @property
    def lines(self) -> List[LineElement]:
        return [e for e in self._elements.values() if isinstance(e, LineElement)]

    # --- Integrity ---

    def find_dangling_references(
        self, allowed_alias_targets: Optional[PathwayModel] = None
    ) -> List[Tuple[str, str, str]]:
        """
        Lists every non-null reference whose target is not part of this
        document, as (element id, reference name, target id) tuples. Alias
        references into allowed_alias_targets are not reported.
        """
        dangling = []
        for element in self._elements.values():
            if element.group_ref is not None and not self.has_pathway_object(element.group_ref):
                dangling.append((element.element_id, "groupRef", element.group_ref.element_id))
            match element:
                case LineElement():
                    for name, point in (("start", element.start_point), ("end", element.end_point)):
                        target = point.element_ref
                        if target is not None and not self.has_pathway_object(target):
                            dangling.append((element.element_id, f"{name}.elementRef", target.element_id))
                case Group():
                    for member in element.members:
                        if not self.has_pathway_object(member):
                            dangling.append((element.element_id, "member", member.element_id))
                case DataNode() if element.alias_ref is not None:
                    target = element.alias_ref
                    allowed = (allowed_alias_targets is not None
                               and allowed_alias_targets.has_pathway_object(target))
                    if not self.has_pathway_object(target) and not allowed:
                        dangling.append((element.element_id, "aliasRef", target.element_id))
        return dangling

    def clone(self) -> PathwayModel:
        """Returns an independent deep copy of this document, e.g. for rollback."""
        return deepcopy(self)
