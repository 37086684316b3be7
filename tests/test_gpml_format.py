# tests/test_gpml_format.py
import logging

import pytest
from lxml import etree as ET

from pathway_transfer.core.copy_set import is_synthetic_info
from pathway_transfer.core.errors import GpmlFormatError
from pathway_transfer.core.gpml_format import (
    read_from_file, read_from_xml, write_to_file, write_to_xml
)
from pathway_transfer.core.pathway_copier import copy_pathway_elements
from pathway_transfer.core.pathway_model import DataNodeType, PathwayModel
from pathway_transfer.utils.config import GPML_NAMESPACE


def _gpml(body="", root_attrs='title="t"'):
    return (f'<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<Pathway xmlns="{GPML_NAMESPACE}" {root_attrs}>{body}</Pathway>')


def _node(element_id, extra="", graphics='centerX="10" centerY="10" width="20" height="10"'):
    return (f'<DataNodes><DataNode elementId="{element_id}" textLabel="X" type="GeneProduct" {extra}>'
            f'<Graphics {graphics}/></DataNode></DataNodes>')


def _ref_ids(element):
    refs = {"group": element.group_ref.element_id if element.group_ref else None}
    if hasattr(element, "points"):
        refs["ends"] = [p.element_ref.element_id if p.element_ref else None
                        for p in (element.start_point, element.end_point)]
        refs["anchors"] = [a.element_id for a in element.anchors]
    if hasattr(element, "members"):
        refs["members"] = [m.element_id for m in element.members]
    if hasattr(element, "alias_ref"):
        refs["alias"] = element.alias_ref.element_id if element.alias_ref else None
    return refs


def test_written_document_is_gpml_2021(sample_model):
    text = write_to_xml(sample_model)
    assert text.startswith("<?xml version='1.0' encoding='UTF-8'?>")
    root = ET.fromstring(text.encode("utf-8"))
    assert root.tag == f"{{{GPML_NAMESPACE}}}Pathway"
    assert root.get("title") == "p53 signaling"
    containers = [ET.QName(child).localname for child in root]
    assert containers == ["Description", "Graphics", "DataNodes", "Interactions", "Labels", "Shapes", "Groups"]


def test_round_trip_preserves_everything(sample_model):
    restored = read_from_xml(write_to_xml(sample_model))

    assert restored.pathway.get_data() == sample_model.pathway.get_data()
    assert [e.element_id for e in restored] != []
    assert len(restored) == len(sample_model)
    for original in sample_model:
        copy = restored.get_element(original.element_id)
        assert type(copy) is type(original)
        assert copy.get_data() == original.get_data()
        assert _ref_ids(copy) == _ref_ids(original)
    assert restored.find_dangling_references() == []


def test_round_trip_of_copied_fragment(sample_model):
    selection = [sample_model.get_element(i) for i in ("n1", "n3", "g1", "i2")]
    fragment = copy_pathway_elements(sample_model, selection).fragment

    restored = read_from_xml(write_to_xml(fragment, pretty_print=False))

    assert is_synthetic_info(restored.pathway)
    assert [m.element_id for m in restored.get_element("g1").members] == ["n1", "n3"]
    assert restored.get_element("i2").start_element_ref is restored.get_element("n3")
    assert restored.get_element("i2").end_element_ref is None


def test_compact_output_has_no_indentation(sample_model):
    compact = write_to_xml(sample_model, pretty_print=False)
    pretty = write_to_xml(sample_model, pretty_print=True)
    assert len(compact.splitlines()) < len(pretty.splitlines())
    assert read_from_xml(compact).get_element("i1").anchors[1].position == 0.7


@pytest.mark.parametrize("text", [None, "", "   \n\t"])
def test_empty_text_reads_as_none(text):
    assert read_from_xml(text) is None


def test_minimal_document():
    model = read_from_xml(_gpml())
    assert isinstance(model, PathwayModel)
    assert model.pathway.title == "t"
    assert len(model) == 0


@pytest.mark.parametrize("text", [
    "not xml at all",
    "<Pathway",
    _gpml(_node("n1"))[:-20],
])
def test_malformed_text_raises(text):
    with pytest.raises(GpmlFormatError, match="Malformed"):
        read_from_xml(text)


def test_truncated_payload_raises(sample_model):
    text = write_to_xml(sample_model)
    with pytest.raises(GpmlFormatError):
        read_from_xml(text[: len(text) // 2])


def test_unsupported_root_raises():
    with pytest.raises(GpmlFormatError, match="Unsupported"):
        read_from_xml("<Diagram/>")
    with pytest.raises(GpmlFormatError, match="Unsupported"):
        read_from_xml('<Pathway xmlns="http://genmapp.org/GPML/2010a" Name="old"/>')


def test_missing_id_raises():
    body = '<DataNodes><DataNode textLabel="X"/></DataNodes>'
    with pytest.raises(GpmlFormatError, match="without elementId"):
        read_from_xml(_gpml(body))


def test_duplicate_id_raises():
    body = ('<DataNodes><DataNode elementId="n1"/></DataNodes>'
            '<Labels><Label elementId="n1"/></Labels>')
    with pytest.raises(GpmlFormatError, match="Duplicate elementId 'n1'"):
        read_from_xml(_gpml(body))


def test_unparsable_number_raises():
    with pytest.raises(GpmlFormatError, match="Invalid number 'abc'"):
        read_from_xml(_gpml(_node("n1", graphics='centerX="abc"')))


def test_line_with_single_point_raises():
    body = ('<Interactions><Interaction elementId="i1"><Waypoints><Point x="1" y="2"/></Waypoints>'
            '</Interaction></Interactions>')
    with pytest.raises(GpmlFormatError, match="at least two points"):
        read_from_xml(_gpml(body))


def test_group_ref_to_non_group_raises():
    body = ('<DataNodes><DataNode elementId="n1"/><DataNode elementId="n2" groupRef="n1"/></DataNodes>')
    with pytest.raises(GpmlFormatError, match="not a Group"):
        read_from_xml(_gpml(body))


@pytest.mark.parametrize("groups", [
    '<Group elementId="g1" groupRef="g1"/>',
    '<Group elementId="g1" groupRef="g2"/><Group elementId="g2" groupRef="g1"/>',
])
def test_group_nested_in_itself_raises(groups):
    with pytest.raises(GpmlFormatError, match="Invalid groupRef"):
        read_from_xml(_gpml(f"<Groups>{groups}</Groups>"))


def test_unknown_references_are_dropped(caplog):
    body = ('<DataNodes><DataNode elementId="n1" type="Alias" aliasRef="nowhere" groupRef="gone"/></DataNodes>'
            '<Interactions><Interaction elementId="i1"><Waypoints>'
            '<Point x="0" y="0" elementRef="n1"/><Point x="5" y="0" elementRef="missing"/>'
            '</Waypoints></Interaction></Interactions>')
    with caplog.at_level(logging.WARNING):
        model = read_from_xml(_gpml(body))

    node = model.get_element("n1")
    assert node.alias_ref is None
    assert node.group_ref is None
    assert model.get_element("i1").start_element_ref is node
    assert model.get_element("i1").end_element_ref is None
    assert {r.reference for r in caplog.records if hasattr(r, "reference")} == {
        "aliasRef", "groupRef", "elementRef"
    }


def test_unknown_data_node_type_degrades(caplog):
    with caplog.at_level(logging.WARNING):
        model = read_from_xml(_gpml(_node("n1").replace("GeneProduct", "Mystery")))
    assert model.get_element("n1").type is DataNodeType.UNDEFINED
    assert "Mystery" in caplog.text


def test_reference_leaving_the_document_is_omitted(sample_model, caplog):
    fragment = copy_pathway_elements(
        sample_model, [sample_model.get_element("a1")], destination=sample_model
    ).fragment
    assert fragment.get_element("a1").alias_ref is sample_model.get_element("g1")

    with caplog.at_level(logging.WARNING):
        text = write_to_xml(fragment)

    assert "aliasRef" not in text
    assert "Omitting aliasRef" in caplog.text
    assert read_from_xml(text).get_element("a1").alias_ref is None


def test_file_round_trip(sample_model, tmp_path):
    path = tmp_path / "p53.gpml"
    write_to_file(sample_model, str(path))
    restored = read_from_file(str(path))
    assert restored.get_element("n3").dynamic_properties == {"note": "p21"}
    assert restored.get_linkable("an2").shape_type == "Circle"


def test_file_with_invalid_utf8_raises(tmp_path):
    path = tmp_path / "broken.gpml"
    path.write_bytes(_gpml(root_attrs='title="p53 \xff\xfe"').encode("latin-1"))
    with pytest.raises(GpmlFormatError, match="Malformed"):
        read_from_file(str(path))


def test_file_honours_declared_encoding(tmp_path):
    path = tmp_path / "latin1.gpml"
    text = (f'<?xml version="1.0" encoding="ISO-8859-1"?>\n'
            f'<Pathway xmlns="{GPML_NAMESPACE}" title="Apoptose in der Zelle \xe9"/>')
    path.write_bytes(text.encode("latin-1"))
    assert read_from_file(str(path)).pathway.title == "Apoptose in der Zelle \xe9"


def test_entities_are_not_resolved():
    text = ('<?xml version="1.0"?>\n<!DOCTYPE Pathway [<!ENTITY secret SYSTEM "file:///etc/passwd">]>\n'
            f'<Pathway xmlns="{GPML_NAMESPACE}" title="&secret;"/>')
    try:
        model = read_from_xml(text)
    except GpmlFormatError:
        return
    assert "root:" not in model.pathway.title
