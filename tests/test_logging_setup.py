# tests/test_logging_setup.py
import json
import logging

import pytest

from pathway_transfer.core.pathway_copier import copy_pathway_elements
from pathway_transfer.utils.logging_setup import (
    DiagnosticsCollector, setup_global_logging, setup_logging_from_settings
)


@pytest.fixture
def collector():
    handler = DiagnosticsCollector()
    package_logger = logging.getLogger("pathway_transfer")
    package_logger.addHandler(handler)
    yield handler
    package_logger.removeHandler(handler)


def test_collector_keeps_element_and_reference(collector, sample_model):
    copy_pathway_elements(sample_model, [sample_model.get_element("a1")])

    assert collector.counts == {"WARNING": 1}
    entry = collector.entries[0]
    assert entry.element_id == "a1"
    assert entry.reference == "aliasRef"
    assert entry.level_name == "WARNING"
    assert entry.logger_name == "pathway_transfer.core.reference_remapper"
    assert collector.entries_for("a1") == [entry]
    assert collector.entries_for("n1") == []


def test_collector_ignores_records_below_its_level(collector, sample_model):
    copy_pathway_elements(sample_model, [sample_model.get_element("i1")])
    assert collector.entries == []


def test_collector_signal_and_clear(qtbot, collector):
    with qtbot.waitSignal(collector.signals.entry_received, timeout=1000) as blocker:
        logging.getLogger("pathway_transfer.test").error("Something broke")
    assert blocker.args[0].message == "Something broke"

    with qtbot.waitSignal(collector.signals.cleared, timeout=1000):
        collector.clear()
    assert collector.entries == []
    assert collector.counts == {}


def test_collector_export_json(collector, tmp_path):
    logging.getLogger("pathway_transfer.test").warning(
        "Lost something", extra={"element_id": "x1", "reference": "groupRef"}
    )
    path = tmp_path / "diagnostics.json"
    assert collector.export_json(str(path))
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data[0]["element_id"] == "x1"
    assert data[0]["level"] == "WARNING"


def test_setup_global_logging(restore_root_logging, tmp_path):
    log_file = tmp_path / "transfer.log"
    root_logger = setup_global_logging("warning", str(log_file))

    assert root_logger is logging.getLogger()
    assert len(root_logger.handlers) == 2
    console, file_handler = root_logger.handlers
    assert console.level == logging.WARNING
    assert file_handler.level == logging.DEBUG

    logging.getLogger("pathway_transfer.test").debug("only in the file")
    file_handler.flush()
    assert "only in the file" in log_file.read_text(encoding="utf-8")


def test_setup_global_logging_unknown_level(restore_root_logging):
    root_logger = setup_global_logging("chatty")
    assert root_logger.handlers[0].level == logging.INFO


def test_collector_records_dropped_group_members(collector, sample_model):
    copy_pathway_elements(sample_model, [sample_model.get_element(i) for i in ("g1", "n1")])

    members = [e for e in collector.entries if e.reference == "member"]
    assert [e.element_id for e in members] == ["g1", "g1"]
    assert all(e.level_name == "WARNING" for e in members)
    assert "n2" in members[0].message


def test_setup_logging_from_settings(restore_root_logging, settings_manager):
    settings_manager.set("log_level", "ERROR")
    root_logger = setup_logging_from_settings(settings_manager)
    assert root_logger.handlers[0].level == logging.ERROR
