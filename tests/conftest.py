# tests/conftest.py
import logging
import os

# Must be set before any Qt module creates an application
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtCore import QSettings

from pathway_transfer.core.pathway_model import (
    DataNode, DataNodeType, Group, GroupType, Interaction, Label, LinePoint,
    Pathway, PathwayModel, Shape, Xref
)
from pathway_transfer.managers.settings_manager import SettingsManager


@pytest.fixture
def sample_model():
    """
    A small p53 pathway:

    * n1 (TP53), n2 (MDM2), n3 (CDKN1A) grouped in complex g1
    * a1, an alias of g1
    * i1 from n1 to n2, with anchors an1 (0.3) and an2 (0.7)
    * i2 from n3 to anchor an2 of i1
    * label l1 and shape s1, not connected to anything
    """
    model = PathwayModel(Pathway(
        title="p53 signaling", organism="Homo sapiens", source="WikiPathways",
        version="20210110", description="Minimal p53 network", board_width=640.0, board_height=480.0,
    ))

    n1 = DataNode(element_id="n1", text_label="TP53", type=DataNodeType.GENE_PRODUCT,
                  xref=Xref("7157", "Entrez Gene"), center_x=100.0, center_y=100.0, width=80.0, height=20.0)
    n2 = DataNode(element_id="n2", text_label="MDM2", type=DataNodeType.GENE_PRODUCT,
                  xref=Xref("4193", "Entrez Gene"), center_x=300.0, center_y=100.0, width=80.0, height=20.0)
    n3 = DataNode(element_id="n3", text_label="CDKN1A", type=DataNodeType.PROTEIN,
                  xref=Xref("P38936", "Uniprot-TrEMBL"), center_x=200.0, center_y=250.0, width=80.0, height=20.0,
                  dynamic_properties={"note": "p21"})
    for node in (n1, n2, n3):
        model.add(node)

    g1 = Group(element_id="g1", type=GroupType.COMPLEX, center_x=200.0, center_y=175.0,
               width=300.0, height=190.0)
    model.add(g1)
    for node in (n1, n2, n3):
        g1.add_member(node)

    a1 = DataNode(element_id="a1", text_label="p53 complex", type=DataNodeType.ALIAS,
                  center_x=450.0, center_y=320.0, width=90.0, height=25.0)
    model.add(a1)
    a1.alias_ref = g1

    i1 = Interaction(element_id="i1", xref=Xref("R-HSA-69541", "Reactome"), points=[
        LinePoint(x=140.0, y=100.0, rel_x=1.0, rel_y=0.0),
        LinePoint(x=260.0, y=100.0, arrow_head="mim-conversion", rel_x=-1.0, rel_y=0.0),
    ])
    model.add(i1)
    i1.start_element_ref = n1
    i1.end_element_ref = n2
    i1.add_anchor(0.3, element_id="an1")
    an2 = i1.add_anchor(0.7, shape_type="Circle", element_id="an2")

    i2 = Interaction(element_id="i2", points=[
        LinePoint(x=200.0, y=240.0, rel_x=0.0, rel_y=-1.0),
        LinePoint(x=200.0, y=175.0),
        LinePoint(x=224.0, y=100.0, arrow_head="mim-inhibition"),
    ])
    model.add(i2)
    i2.start_element_ref = n3
    i2.end_element_ref = an2

    model.add(Label(element_id="l1", text_label="Nucleus", center_x=50.0, center_y=30.0,
                    width=60.0, height=20.0, href="https://www.wikipathways.org"))
    model.add(Shape(element_id="s1", shape_type="Oval", rotation=0.5, center_x=500.0, center_y=400.0,
                    width=100.0, height=50.0))
    return model


@pytest.fixture
def restore_root_logging():
    """Undo handler changes made by setup_global_logging."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)


@pytest.fixture
def settings_manager(qapp, tmp_path):
    # Keep test settings out of the user's configuration directory
    QSettings.setPath(QSettings.Format.IniFormat, QSettings.Scope.UserScope, str(tmp_path))
    sm = SettingsManager(app_name="PathwayTransfer_Test_App", organization="PathwayTransfer_Test_Org")
    sm.settings.clear()
    sm.clear_cache()
    yield sm
    sm.settings.clear()
