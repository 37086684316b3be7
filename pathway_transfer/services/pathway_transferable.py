# pathway_transfer/services/pathway_transferable.py
"""
Moves pathway fragments through a QMimeData payload.

The producing side writes the fragment as GPML text into the text/plain
flavor. The consuming side accepts either such text or a file location
(a file URL list, or a raw text/uri-list) pointing at a GPML document.
"""
import logging
from typing import Callable, Iterable, Optional, Tuple

from PyQt6.QtCore import QMimeData, QUrl

from ..core.errors import PathwayTransferError
from ..core.gpml_format import read_from_file, read_from_xml, write_to_xml
from ..core.pathway_copier import CopyResult, copy_pathway_elements
from ..core.pathway_model import PathwayModel, PathwayObject
from ..utils.config import DEFAULT_PAYLOAD_PRETTY_PRINT, MIME_TYPE_TEXT, MIME_TYPE_URI_LIST

logger = logging.getLogger(__name__)

DocumentLoader = Callable[[QUrl], Optional[PathwayModel]]


# --- Producing ---

def produce(fragment: PathwayModel, pretty_print: bool = DEFAULT_PAYLOAD_PRETTY_PRINT) -> Optional[str]:
    """Returns the GPML text for fragment, or None if it could not be serialized."""
    try:
        return write_to_xml(fragment, pretty_print=pretty_print)
    except Exception as e:
        logger.error(f"Unable to produce transfer payload for {fragment!r}: {e}", exc_info=True)
        return None


def create_mime_data(fragment: PathwayModel,
                     pretty_print: bool = DEFAULT_PAYLOAD_PRETTY_PRINT) -> Optional[QMimeData]:
    payload = produce(fragment, pretty_print)
    if payload is None:
        return None
    mime_data = QMimeData()
    mime_data.setText(payload)
    logger.debug(f"Created transfer payload of {len(payload)} characters.")
    return mime_data


def transfer_selection(source: PathwayModel, selection: Iterable[PathwayObject],
                       destination: Optional[PathwayModel] = None,
                       pretty_print: bool = DEFAULT_PAYLOAD_PRETTY_PRINT,
                       keep_live_alias_refs: bool = True) -> Tuple[Optional[QMimeData], CopyResult]:
    """Copies selection out of source and wraps the fragment in a QMimeData payload."""
    result = copy_pathway_elements(source, selection, destination, keep_live_alias_refs)
    mime_data = create_mime_data(result.fragment, pretty_print)
    if mime_data is not None:
        logger.info(f"Copied {len(result.fragment)} element(s) to the transfer payload.")
    return mime_data, result


def transfer_selection_with_settings(settings_manager, source: PathwayModel,
                                     selection: Iterable[PathwayObject],
                                     destination: Optional[PathwayModel] = None
                                     ) -> Tuple[Optional[QMimeData], CopyResult]:
    """transfer_selection() with the payload and alias options stored in the settings."""
    return transfer_selection(
        source, selection, destination,
        pretty_print=settings_manager.get("payload_pretty_print"),
        keep_live_alias_refs=settings_manager.get("keep_live_alias_refs"),
    )


# --- Consuming ---

def _is_file_uri_list(text: str) -> bool:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return bool(lines) and all(line.startswith("file://") for line in lines)


def extract_text(mime_data: QMimeData) -> Optional[str]:
    """
    Returns the text flavor, or None if there is none. Text that is only a
    list of file:// URIs (as set by file managers) does not count as text.
    """
    # hasText() is also true for a bare URL list, so ask for the flavor itself
    if mime_data is None or not mime_data.hasFormat(MIME_TYPE_TEXT):
        return None
    text = mime_data.text()
    if not text.strip():
        return None
    if _is_file_uri_list(text):
        logger.debug("Ignoring text flavor that holds a file URI list.")
        return None
    return text


def extract_file_location(mime_data: QMimeData) -> Optional[QUrl]:
    """
    Returns the first local file of the URL list. Otherwise falls back to
    the first entry of a raw text/uri-list, if that is a well-formed
    absolute URL.
    """
    if mime_data is None:
        return None
    for url in mime_data.urls():
        if url.isLocalFile():
            return url

    if not mime_data.hasFormat(MIME_TYPE_URI_LIST):
        return None
    raw = bytes(mime_data.data(MIME_TYPE_URI_LIST)).decode("utf-8", errors="replace")
    for line in raw.splitlines():
        line = line.strip()
        # RFC 2483: lines starting with '#' are comments
        if not line or line.startswith("#"):
            continue
        url = QUrl(line, QUrl.ParsingMode.StrictMode)
        if url.isValid() and not url.isRelative():
            return url
        logger.debug(f"First text/uri-list entry is not a valid absolute URL: '{line}'.")
        return None
    return None


def load_local_document(url: QUrl) -> Optional[PathwayModel]:
    """Default document loader: reads a local GPML file."""
    if not url.isLocalFile():
        logger.warning(f"Cannot load '{url.toString()}': only local files are supported.")
        return None
    path = url.toLocalFile()
    try:
        return read_from_file(path)
    except OSError as e:
        logger.error(f"Unable to read pathway document '{path}': {e}")
        return None


def load(mime_data: QMimeData, document_loader: Optional[DocumentLoader] = None) -> Optional[PathwayModel]:
    """
    Rebuilds a pathway model from a payload: from its text if present,
    otherwise from the file it points at. Returns None if the payload holds
    neither. Raises GpmlFormatError for a malformed text payload or a
    malformed document at the file location.
    """
    text = extract_text(mime_data)
    if text is not None:
        logger.debug(f"Importing from text payload ({len(text)} characters).")
        return read_from_xml(text)

    url = extract_file_location(mime_data)
    if url is not None:
        logger.debug(f"Importing from file location '{url.toString()}'.")
        loader = document_loader or load_local_document
        return loader(url)

    logger.debug("Transfer payload holds neither pathway text nor a file location.")
    return None


def try_load(mime_data: QMimeData, document_loader: Optional[DocumentLoader] = None) -> Optional[PathwayModel]:
    """Like load(), but logs a broken payload and returns None instead of raising."""
    try:
        return load(mime_data, document_loader)
    except PathwayTransferError as e:
        logger.error(f"Unable to paste pathway data: {e}")
        return None


def can_import(mime_data: QMimeData) -> bool:
    if mime_data is None:
        return False
    return mime_data.hasText() or mime_data.hasUrls() or mime_data.hasFormat(MIME_TYPE_URI_LIST)
