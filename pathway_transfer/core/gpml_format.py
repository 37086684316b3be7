# pathway_transfer/core/gpml_format.py
"""
Reads and writes pathway documents as GPML 2021 XML.

The writer produces a self-contained document: every reference it emits
(groupRef, aliasRef, elementRef) names an element of the same document.
The reader rebuilds the object graph in two passes, first creating every
element and anchor, then linking references by id.
"""
import logging
from typing import Callable, List, Optional, Tuple, Union

from lxml import etree as ET

from ..utils.config import GPML_NAMESPACE
from .errors import GpmlFormatError
from .pathway_model import (
    Anchor, DataNode, DataNodeType, GraphicalLine, Group, GroupType, Interaction,
    Label, LineElement, LinePoint, Pathway, PathwayElement, PathwayModel,
    PathwayObject, Shape, ShapedElement, Xref
)

logger = logging.getLogger(__name__)


def _q(tag: str) -> str:
    return f"{{{GPML_NAMESPACE}}}{tag}"


def _fmt(value: float) -> str:
    return repr(float(value))


# ==============================================================================
# Writing
# ==============================================================================

def write_to_xml(model: PathwayModel, pretty_print: bool = True) -> str:
    """Serializes model to a GPML document string with an XML declaration."""
    root = ET.Element(_q("Pathway"), nsmap={None: GPML_NAMESPACE})
    info = model.pathway if model.pathway is not None else Pathway()
    root.set("title", info.title)
    for attr, value in (("organism", info.organism), ("source", info.source),
                        ("version", info.version), ("license", info.license)):
        if value:
            root.set(attr, value)
    if info.description:
        ET.SubElement(root, _q("Description")).text = info.description
    graphics = ET.SubElement(root, _q("Graphics"))
    graphics.set("boardWidth", _fmt(info.board_width))
    graphics.set("boardHeight", _fmt(info.board_height))

    sections: List[Tuple[str, type, Callable]] = [
        ("DataNodes", DataNode, _write_data_node),
        ("Interactions", Interaction, _write_line),
        ("GraphicalLines", GraphicalLine, _write_line),
        ("Labels", Label, _write_label),
        ("Shapes", Shape, _write_shape),
        ("Groups", Group, _write_group),
    ]
    for container_tag, kind, writer in sections:
        elements = [e for e in model if type(e) is kind]
        if not elements:
            continue
        container = ET.SubElement(root, _q(container_tag))
        for element in elements:
            writer(container, element, model)

    xml_bytes = ET.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=pretty_print)
    return xml_bytes.decode("utf-8")


def _ref_id(model: PathwayModel, owner: PathwayElement, reference: str,
            target: Optional[PathwayObject]) -> Optional[str]:
    """Returns the id to write for a reference, or None if it must be omitted."""
    if target is None:
        return None
    if model.has_pathway_object(target):
        return target.element_id
    logger.warning(
        f"Omitting {reference} of '{owner.element_id}': target '{target.element_id}' is not part of the document.",
        extra={"element_id": owner.element_id, "reference": reference},
    )
    return None


def _start_element(container, tag: str, element: PathwayElement):
    node = ET.SubElement(container, _q(tag))
    node.set("elementId", element.element_id)
    return node


def _finish_element(node, element: PathwayElement, model: PathwayModel) -> None:
    for key, value in element.dynamic_properties.items():
        prop = ET.SubElement(node, _q("Property"))
        prop.set("key", key)
        prop.set("value", value)
    group_id = _ref_id(model, element, "groupRef", element.group_ref)
    if group_id is not None:
        node.set("groupRef", group_id)


def _write_xref(node, xref: Optional[Xref]) -> None:
    if xref is None:
        return
    xref_node = ET.SubElement(node, _q("Xref"))
    xref_node.set("identifier", xref.identifier)
    xref_node.set("dataSource", xref.data_source)


def _write_shape_graphics(node, element: ShapedElement):
    graphics = ET.SubElement(node, _q("Graphics"))
    graphics.set("centerX", _fmt(element.center_x))
    graphics.set("centerY", _fmt(element.center_y))
    graphics.set("width", _fmt(element.width))
    graphics.set("height", _fmt(element.height))
    graphics.set("textColor", element.text_color)
    graphics.set("borderColor", element.border_color)
    graphics.set("fillColor", element.fill_color)
    graphics.set("shapeType", element.shape_type)
    return graphics


def _write_data_node(container, node_model: DataNode, model: PathwayModel) -> None:
    node = _start_element(container, "DataNode", node_model)
    node.set("textLabel", node_model.text_label)
    node.set("type", node_model.type.value)
    _write_xref(node, node_model.xref)
    _write_shape_graphics(node, node_model)
    _finish_element(node, node_model, model)
    alias_id = _ref_id(model, node_model, "aliasRef", node_model.alias_ref)
    if alias_id is not None:
        node.set("aliasRef", alias_id)


def _write_label(container, label: Label, model: PathwayModel) -> None:
    node = _start_element(container, "Label", label)
    node.set("textLabel", label.text_label)
    if label.href:
        node.set("href", label.href)
    _write_shape_graphics(node, label)
    _finish_element(node, label, model)


def _write_shape(container, shape: Shape, model: PathwayModel) -> None:
    node = _start_element(container, "Shape", shape)
    if shape.text_label:
        node.set("textLabel", shape.text_label)
    graphics = _write_shape_graphics(node, shape)
    graphics.set("rotation", _fmt(shape.rotation))
    _finish_element(node, shape, model)


def _write_group(container, group: Group, model: PathwayModel) -> None:
    node = _start_element(container, "Group", group)
    node.set("type", group.type.value)
    if group.text_label:
        node.set("textLabel", group.text_label)
    _write_xref(node, group.xref)
    _write_shape_graphics(node, group)
    _finish_element(node, group, model)


def _write_line(container, line: LineElement, model: PathwayModel) -> None:
    node = _start_element(container, type(line).__name__, line)
    if isinstance(line, Interaction):
        _write_xref(node, line.xref)
    waypoints = ET.SubElement(node, _q("Waypoints"))
    last = len(line.points) - 1
    for index, point in enumerate(line.points):
        point_node = ET.SubElement(waypoints, _q("Point"))
        point_node.set("arrowHead", point.arrow_head)
        point_node.set("x", _fmt(point.x))
        point_node.set("y", _fmt(point.y))
        point_node.set("relX", _fmt(point.rel_x))
        point_node.set("relY", _fmt(point.rel_y))
        if index not in (0, last):
            continue
        reference = "start.elementRef" if index == 0 else "end.elementRef"
        target_id = _ref_id(model, line, reference, point.element_ref)
        if target_id is not None:
            point_node.set("elementRef", target_id)
    for anchor in line.anchors:
        anchor_node = ET.SubElement(waypoints, _q("Anchor"))
        anchor_node.set("elementId", anchor.element_id)
        anchor_node.set("position", _fmt(anchor.position))
        anchor_node.set("shapeType", anchor.shape_type)

    graphics = ET.SubElement(node, _q("Graphics"))
    graphics.set("lineColor", line.line_color)
    graphics.set("lineStyle", line.line_style)
    graphics.set("lineWidth", _fmt(line.line_width))
    graphics.set("connectorType", line.connector_type)
    _finish_element(node, line, model)


def write_to_file(model: PathwayModel, path: str, pretty_print: bool = True) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(write_to_xml(model, pretty_print=pretty_print))
    logger.info(f"Wrote GPML document '{path}'.")


# ==============================================================================
# Reading
# ==============================================================================

class _GpmlReader:
    """Single-use reader state: the model being built and the links still to resolve."""

    def __init__(self, root):
        self.root = root
        self.model = PathwayModel()
        self._seen_ids = set()
        # Links still to resolve, keyed by target id, in document order
        self._group_refs: List[Tuple[PathwayElement, str]] = []
        self._alias_refs: List[Tuple[DataNode, str]] = []
        self._point_refs: List[Tuple[LineElement, LinePoint, str]] = []

    # --- Attribute helpers ---

    @staticmethod
    def _local(node) -> str:
        return ET.QName(node).localname

    def _float(self, node, name: str, default: float = 0.0) -> float:
        value = node.get(name)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            raise GpmlFormatError(
                f"Invalid number '{value}' for attribute '{name}' of <{self._local(node)}> "
                f"(line {node.sourceline})."
            ) from None

    def _element_id(self, node) -> str:
        element_id = node.get("elementId")
        if not element_id:
            raise GpmlFormatError(f"<{self._local(node)}> without elementId (line {node.sourceline}).")
        if element_id in self._seen_ids:
            raise GpmlFormatError(f"Duplicate elementId '{element_id}' (line {node.sourceline}).")
        self._seen_ids.add(element_id)
        return element_id

    def _children(self, container_tag: str, tag: str):
        container = self.root.find(_q(container_tag))
        if container is None:
            return []
        return container.findall(_q(tag))

    # --- Pass 1: create ---

    def read(self) -> PathwayModel:
        self._read_info()
        for node in self._children("DataNodes", "DataNode"):
            self._read_data_node(node)
        for node in self._children("Interactions", "Interaction"):
            self._read_line(node, Interaction())
        for node in self._children("GraphicalLines", "GraphicalLine"):
            self._read_line(node, GraphicalLine())
        for node in self._children("Labels", "Label"):
            label = Label(href=node.get("href", ""))
            self._read_shaped(node, label)
        for node in self._children("Shapes", "Shape"):
            self._read_shaped(node, Shape())
        for node in self._children("Groups", "Group"):
            group = Group(type=GroupType.from_name(node.get("type", GroupType.GROUP.value)))
            group.xref = self._read_xref(node)
            self._read_shaped(node, group)
        self._link()
        return self.model

    def _read_info(self) -> None:
        root = self.root
        info = Pathway(
            title=root.get("title", ""),
            organism=root.get("organism", ""),
            source=root.get("source", ""),
            version=root.get("version", ""),
            license=root.get("license", ""),
        )
        description = root.find(_q("Description"))
        if description is not None and description.text:
            info.description = description.text
        graphics = root.find(_q("Graphics"))
        if graphics is not None:
            info.board_width = self._float(graphics, "boardWidth")
            info.board_height = self._float(graphics, "boardHeight")
        self.model.add(info)

    def _read_xref(self, node) -> Optional[Xref]:
        xref_node = node.find(_q("Xref"))
        if xref_node is None:
            return None
        return Xref(identifier=xref_node.get("identifier", ""), data_source=xref_node.get("dataSource", ""))

    def _read_common(self, node, element: PathwayElement) -> None:
        element.element_id = self._element_id(node)
        for prop in node.findall(_q("Property")):
            key = prop.get("key")
            if key:
                element.dynamic_properties[key] = prop.get("value", "")
        group_id = node.get("groupRef")
        if group_id:
            self._group_refs.append((element, group_id))

    def _read_shaped(self, node, element: ShapedElement) -> None:
        self._read_common(node, element)
        element.text_label = node.get("textLabel", "")
        graphics = node.find(_q("Graphics"))
        if graphics is not None:
            element.center_x = self._float(graphics, "centerX")
            element.center_y = self._float(graphics, "centerY")
            element.width = self._float(graphics, "width")
            element.height = self._float(graphics, "height")
            element.text_color = graphics.get("textColor", element.text_color)
            element.border_color = graphics.get("borderColor", element.border_color)
            element.fill_color = graphics.get("fillColor", element.fill_color)
            element.shape_type = graphics.get("shapeType", element.shape_type)
            if isinstance(element, Shape):
                element.rotation = self._float(graphics, "rotation")
        self.model.add(element)

    def _read_data_node(self, node) -> None:
        data_node = DataNode(type=DataNodeType.from_name(node.get("type", DataNodeType.UNDEFINED.value)))
        data_node.xref = self._read_xref(node)
        self._read_shaped(node, data_node)
        alias_id = node.get("aliasRef")
        if alias_id:
            self._alias_refs.append((data_node, alias_id))

    def _read_line(self, node, line: LineElement) -> None:
        self._read_common(node, line)
        if isinstance(line, Interaction):
            line.xref = self._read_xref(node)

        waypoints = node.find(_q("Waypoints"))
        point_nodes = waypoints.findall(_q("Point")) if waypoints is not None else []
        if len(point_nodes) < 2:
            raise GpmlFormatError(
                f"Line '{line.element_id}' needs at least two points, found {len(point_nodes)}."
            )
        line.points = []
        for point_node in point_nodes:
            point = LinePoint(
                x=self._float(point_node, "x"),
                y=self._float(point_node, "y"),
                arrow_head=point_node.get("arrowHead", "Undirected"),
                rel_x=self._float(point_node, "relX"),
                rel_y=self._float(point_node, "relY"),
            )
            line.points.append(point)
            target_id = point_node.get("elementRef")
            if target_id:
                self._point_refs.append((line, point, target_id))
        for anchor_node in waypoints.findall(_q("Anchor")):
            line.add_anchor(
                position=self._float(anchor_node, "position", 0.5),
                shape_type=anchor_node.get("shapeType", "None"),
                element_id=self._element_id(anchor_node),
            )

        graphics = node.find(_q("Graphics"))
        if graphics is not None:
            line.line_color = graphics.get("lineColor", line.line_color)
            line.line_style = graphics.get("lineStyle", line.line_style)
            line.line_width = self._float(graphics, "lineWidth", line.line_width)
            line.connector_type = graphics.get("connectorType", line.connector_type)
        self.model.add(line)

    # --- Pass 2: link ---

    def _drop(self, owner: PathwayElement, reference: str, target_id: str) -> None:
        logger.warning(
            f"Dropping {reference} of '{owner.element_id}': unknown target '{target_id}'.",
            extra={"element_id": owner.element_id, "reference": reference},
        )

    def _link(self) -> None:
        model = self.model
        for element, group_id in self._group_refs:
            group = model.get_element(group_id)
            if group is None:
                self._drop(element, "groupRef", group_id)
            elif not isinstance(group, Group):
                raise GpmlFormatError(
                    f"groupRef of '{element.element_id}' names '{group_id}', which is not a Group."
                )
            else:
                try:
                    group.add_member(element)
                except ValueError as e:
                    raise GpmlFormatError(f"Invalid groupRef of '{element.element_id}': {e}") from e

        for node, group_id in self._alias_refs:
            group = model.get_element(group_id)
            if isinstance(group, Group):
                node.alias_ref = group
            else:
                self._drop(node, "aliasRef", group_id)

        for line, point, target_id in self._point_refs:
            if point is not line.start_point and point is not line.end_point:
                logger.debug(f"Ignoring elementRef on an inner point of line '{line.element_id}'.")
                continue
            target = model.get_linkable(target_id)
            if isinstance(target, (ShapedElement, Anchor)):
                point.element_ref = target
            else:
                self._drop(line, "elementRef", target_id)


def read_from_xml(text: Union[str, bytes, None]) -> Optional[PathwayModel]:
    """
    Parses a GPML document into a new PathwayModel.

    text may be a string or raw bytes; bytes are decoded by the parser
    according to the document's XML declaration. Returns None for empty or
    absent text. Raises GpmlFormatError if the text is not a well-formed
    GPML 2021 document.
    """
    if text is None or not text.strip():
        return None
    data = text.strip()
    if isinstance(data, str):
        data = data.encode("utf-8")
    parser = ET.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)
    try:
        root = ET.fromstring(data, parser)
    except (ET.XMLSyntaxError, ValueError) as e:
        raise GpmlFormatError(f"Malformed GPML payload: {e}") from e

    if root.tag != _q("Pathway"):
        raise GpmlFormatError(
            f"Unsupported document root '{root.tag}', expected <Pathway> in namespace '{GPML_NAMESPACE}'."
        )
    model = _GpmlReader(root).read()
    logger.debug(f"Read {model!r} from GPML payload.")
    return model


def read_from_file(path: str) -> Optional[PathwayModel]:
    with open(path, "rb") as f:
        data = f.read()
    logger.info(f"Reading GPML document '{path}'.")
    return read_from_xml(data)
