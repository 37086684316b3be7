# pathway_transfer/services/transfer_worker.py

import logging
from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from ..core.gpml_format import write_to_xml
from ..utils.config import DEFAULT_PAYLOAD_PRETTY_PRINT

logger = logging.getLogger(__name__)


class TransferProducerWorker(QObject):
    """
    A worker that serializes a copied fragment in a background thread so a
    large selection does not block the UI. Results are reported through
    Qt signals.
    """
    payload_ready = pyqtSignal(str)
    payload_failed = pyqtSignal(str)

    def __init__(self, pretty_print: bool = DEFAULT_PAYLOAD_PRETTY_PRINT, parent=None):
        super().__init__(parent)
        self.pretty_print = pretty_print

    @classmethod
    def from_settings(cls, settings_manager, parent=None) -> "TransferProducerWorker":
        return cls(pretty_print=settings_manager.get("payload_pretty_print"), parent=parent)

    @pyqtSlot(object)
    def produce_payload(self, fragment):
        """
        Serializes fragment (a PathwayModel) to GPML text.

        This is a Qt slot designed to be called via a queued connection from
        the main thread. The fragment must not be modified until one of the
        result signals has been emitted.
        """
        logger.info(f"TransferProducerWorker: Serializing {fragment!r}...")
        try:
            payload = write_to_xml(fragment, pretty_print=self.pretty_print)
        except Exception as e:
            logger.error(f"TransferProducerWorker: Serialization failed: {e}", exc_info=True)
            self.payload_failed.emit(f"Unable to copy to clipboard: {e}")
            return
        logger.info(f"TransferProducerWorker: Payload of {len(payload)} characters ready.")
        self.payload_ready.emit(payload)
