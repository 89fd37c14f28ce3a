import copy
from typing import Any, Dict, List, Optional


class MessageExcerpt:
    """
    Header-and-metadata record of one Gmail message, as written to the export file.

    ``metadata`` is the message resource returned by ``users.messages.get``
    with ``payload.headers`` removed; ``header`` maps every header name
    (case as received) to its values in the order they appeared.
    """

    def __init__(self, metadata: Dict[str, Any], header: Dict[str, List[str]]):
        self.metadata = metadata
        self.header = header

    @property
    def id(self) -> Optional[str]:
        return self.metadata.get("id")

    @property
    def last_received(self) -> Optional[str]:
        """Timestamp clause of the topmost Received header, if there is one"""
        received = self.header.get("Received")
        if not received or ";" not in received[0]:
            return None
        return received[0].rsplit(";", 1)[1].strip() or None

    def to_dict(self) -> Dict[str, Any]:
        return {"Metadata": self.metadata, "Header": self.header}

    def __repr__(self):
        subject = self.header.get("Subject", [""])[0]
        return f"<MessageExcerpt id={self.id} subject={subject!r}>"


def extract_excerpt(message: Dict[str, Any]) -> MessageExcerpt:
    """
    Turn a raw Gmail message resource into a MessageExcerpt.

    Repeated headers (Received, for example) keep every value. The input
    dict is left untouched; the header list is only dropped from the copy
    stored as metadata.
    """
    metadata = copy.deepcopy(message)
    payload = metadata.get("payload") or {}

    header: Dict[str, List[str]] = {}
    for h in payload.pop("headers", None) or []:
        header.setdefault(h["name"], []).append(h["value"])

    return MessageExcerpt(metadata, header)
