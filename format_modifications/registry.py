"""
Per-document formatter attachments.

An editor session attaches one or more formatters to each document it
wants reformatted, each with its own configuration snapshot. The
registry later replays those attachments when the user asks to format
a document, or when the document is saved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .config import Config, merge_config
from .dispatch import Formatter
from .document import Document
from .domain import ReformatResult
from .errors import ReentrantInvocationError
from .preflight import validate_attachment
from .reformat import format_modifications
from .vcs import VCSClient

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    formatter: Formatter
    config: Config


class AttachmentRegistry:
    """
    Maps (document id, formatter name) to the configuration to use.

    A document is reformatted by at most one invocation at a time;
    nested requests for the same document are rejected.
    """

    def __init__(self, vcs_client: Optional[VCSClient] = None) -> None:
        self._attachments: Dict[Tuple[str, str], Attachment] = {}
        self._in_flight: Set[str] = set()
        self._vcs_client = vcs_client

    def attach(
        self,
        formatter: Formatter,
        document: Document,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Config:
        """
        Attach formatter to document and return the merged configuration.

        Raises ConfigError or UnsupportedCapabilityError when the
        combination cannot work; nothing is registered in that case.
        Re-attaching the same formatter replaces its configuration.
        """

        config = merge_config(overrides)
        validate_attachment(formatter, config)

        self._attachments[(document.id, formatter.name)] = Attachment(formatter, config)
        LOG.debug("Attached %s to %s", formatter.name, document.id)
        return config

    def detach(self, document: Document, formatter_name: Optional[str] = None) -> None:
        """Remove one formatter, or every formatter, from document."""

        for key in list(self._attachments):
            if key[0] == document.id and formatter_name in (None, key[1]):
                del self._attachments[key]

    def attachments(self, document: Document) -> List[Attachment]:
        return [
            attachment
            for (document_id, _), attachment in self._attachments.items()
            if document_id == document.id
        ]

    def format_document(self, document: Document) -> List[ReformatResult]:
        """
        Reformat document's modifications with every attached formatter.

        Formatters run in attachment order, each seeing the document as
        left by the previous one.
        """

        attachments = self.attachments(document)
        if not attachments:
            LOG.warning("no supported formatters attached to document, nothing to do")
            return []

        if document.id in self._in_flight:
            raise ReentrantInvocationError(f"{document.id} is already being reformatted")

        self._in_flight.add(document.id)
        try:
            return [
                format_modifications(
                    attachment.formatter,
                    document,
                    attachment.config,
                    vcs_client=self._vcs_client,
                )
                for attachment in attachments
            ]
        finally:
            self._in_flight.discard(document.id)

    def on_save(self, document: Document) -> List[ReformatResult]:
        """
        Hook for the host to call right before document is written.

        Runs only when an attachment asked for format-on-save.
        """

        if not any(attachment.config.format_on_save for attachment in self.attachments(document)):
            return []
        return self.format_document(document)
