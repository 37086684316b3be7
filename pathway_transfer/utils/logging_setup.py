# pathway_transfer/utils/logging_setup.py

import logging
import json
from datetime import datetime
from typing import Dict, List, Optional
from dataclasses import dataclass
from pathlib import Path

from PyQt6.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)

CONSOLE_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)-8s] [%(name)-20.20s] %(message)s'
CONSOLE_DATE_FORMAT = '%H:%M:%S'


@dataclass
class DiagnosticEntry:
    """A captured log record, with the element and reference it concerns (if any)."""
    timestamp: datetime
    level: int
    logger_name: str
    message: str
    element_id: Optional[str] = None
    reference: Optional[str] = None
    exc_info: Optional[str] = None

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


class QtDiagnosticSignal(QObject):
    """Signal emitter so a UI can follow diagnostics from any thread."""
    entry_received = pyqtSignal(object)
    cleared = pyqtSignal()


class DiagnosticsCollector(logging.Handler):
    """
    Keeps the warnings (by default) emitted during a copy or paste so a caller
    can show the user what was lost. Records logged with
    extra={"element_id": ..., "reference": ...} keep those fields.
    """

    def __init__(self, level=logging.WARNING, max_entries: int = 10000):
        super().__init__(level)
        self.entries: List[DiagnosticEntry] = []
        self.counts: Dict[str, int] = {}
        self.max_entries = max_entries
        self.signals = QtDiagnosticSignal()

    def emit(self, record):
        try:
            entry = DiagnosticEntry(
                timestamp=datetime.fromtimestamp(record.created),
                level=record.levelno,
                logger_name=record.name,
                message=record.getMessage(),
                element_id=getattr(record, 'element_id', None),
                reference=getattr(record, 'reference', None),
                exc_info=logging.Formatter().formatException(record.exc_info) if record.exc_info else None,
            )
            self.entries.append(entry)
            if len(self.entries) > self.max_entries:
                self.entries = self.entries[-self.max_entries:]
            self.counts[entry.level_name] = self.counts.get(entry.level_name, 0) + 1
            self.signals.entry_received.emit(entry)
        except Exception:
            self.handleError(record)

    def entries_for(self, element_id: str) -> List[DiagnosticEntry]:
        return [e for e in self.entries if e.element_id == element_id]

    def clear(self):
        self.entries.clear()
        self.counts.clear()
        self.signals.cleared.emit()

    def export_json(self, filename: str) -> bool:
        """Export collected entries to a JSON file."""
        data = [{
            'timestamp': entry.timestamp.isoformat(),
            'level': entry.level_name,
            'logger': entry.logger_name,
            'message': entry.message,
            'element_id': entry.element_id,
            'reference': entry.reference,
            'exc_info': entry.exc_info,
        } for entry in self.entries]
        try:
            with open(Path(filename), 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            return True
        except OSError as e:
            logger.error(f"Failed to export diagnostics: {e}")
            return False


def setup_global_logging(level=logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the root logger with a console handler and, optionally, a
    file handler that records everything down to DEBUG.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(file_handler)

    logger.debug("Global logging system initialized.")
    return root_logger


def setup_logging_from_settings(settings_manager, log_file: Optional[str] = None) -> logging.Logger:
    """Configures global logging at the console level stored in the settings."""
    return setup_global_logging(settings_manager.get("log_level"), log_file)
