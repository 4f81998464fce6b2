"""Meta-evidence loading from the object store.

A MetaEvidence event points at a JSON document (ERC-1497) describing the
agreement: title, description, the question put to the arbitrator and its
ruling options. Documents are validated with a Draft 7 JSON Schema.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from jsonschema import Draft7Validator

from escrow_reconciler.domain.exceptions import MetaEvidenceError
from escrow_reconciler.logging_config import get_logger

if TYPE_CHECKING:
    from escrow_reconciler.domain.collaborators import ObjectStore

logger = get_logger(__name__)

META_EVIDENCE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["title", "description"],
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "category": {"type": "string"},
        "question": {"type": "string"},
        "fileURI": {"type": "string"},
        "fileHash": {"type": "string"},
        "evidenceDisplayInterfaceURI": {"type": "string"},
        "aliases": {"type": "object", "additionalProperties": {"type": "string"}},
        "rulingOptions": {
            "type": "object",
            "properties": {
                "type": {"type": "string"},
                "titles": {"type": "array", "items": {"type": "string"}},
                "descriptions": {"type": "array", "items": {"type": "string"}},
            },
        },
        "sender": {"type": "string"},
        "receiver": {"type": "string"},
        "amount": {"type": ["string", "number"]},
        "timeout": {"type": ["integer", "string"]},
    },
}


@dataclass(frozen=True)
class MetaEvidence:
    """A validated meta-evidence document."""

    uri: str
    title: str
    description: str
    question: str | None = None
    ruling_titles: list[str] = field(default_factory=list)
    raw: dict = field(default_factory=dict)


class MetaEvidenceReader:
    """Fetches and validates meta-evidence documents."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store
        self._validator = Draft7Validator(META_EVIDENCE_SCHEMA)

    async def load(self, uri: str) -> MetaEvidence:
        """Fetch, parse and validate the document at ``uri``.

        Raises:
            MetaEvidenceError: If the fetch fails, the payload is not JSON, or
                the document does not match the meta-evidence schema.
        """
        try:
            payload = await self._store.fetch(uri)
        except Exception as err:
            raise MetaEvidenceError(uri, f"fetch failed: {err}") from err

        try:
            document = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as err:
            raise MetaEvidenceError(uri, f"not valid JSON: {err}") from err

        errors = sorted(self._validator.iter_errors(document), key=lambda e: [str(part) for part in e.path])
        if errors:
            details = [
                {"path": list(err.path), "message": err.message}
                for err in errors
            ]
            logger.info("meta_evidence.validation_failed", uri=uri, error_count=len(errors))
            raise MetaEvidenceError(
                uri,
                f"schema validation failed with {len(errors)} error(s)",
                validation_errors=details,
            )

        ruling_options = document.get("rulingOptions") or {}
        return MetaEvidence(
            uri=uri,
            title=document["title"],
            description=document["description"],
            question=document.get("question"),
            ruling_titles=list(ruling_options.get("titles", [])),
            raw=document,
        )
