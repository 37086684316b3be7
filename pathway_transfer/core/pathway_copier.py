# pathway_transfer/core/pathway_copier.py
"""
Copies a selection out of a pathway document into an independent fragment.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .copy_set import build_copy_set
from .pathway_model import PathwayModel, PathwayObject
from .reference_remapper import RemapReport, remap_references

logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    fragment: PathwayModel
    report: RemapReport
    has_synthetic_info: bool


def copy_pathway_elements(source: PathwayModel, selection: Iterable[PathwayObject],
                          destination: Optional[PathwayModel] = None,
                          keep_live_alias_refs: bool = True) -> CopyResult:
    """
    Duplicates selection into a fragment and rewires its references.

    With keep_live_alias_refs, an alias whose group stays behind may keep
    pointing at that group if destination holds it. Such a reference does
    not survive serialization.
    """
    copy_set = build_copy_set(source, selection)
    report = remap_references(copy_set, destination if keep_live_alias_refs else None)
    logger.debug(f"Copied {len(copy_set)} element(s) into {copy_set.fragment!r}.")
    return CopyResult(copy_set.fragment, report, copy_set.has_synthetic_info)
