import copy
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .errors import RemoteError
from .gmail_client import MAX_BATCH_IDS


def make_message(msg_id: str, headers: Iterable = (), labels: Iterable[str] = ("UNREAD", "INBOX"),
                 thread_id: Optional[str] = None, size_estimate: int = 1024) -> Dict[str, Any]:
    """Build a message resource shaped like a Gmail ``format=metadata`` response"""
    return {
        "id": msg_id,
        "threadId": thread_id or msg_id,
        "labelIds": list(labels),
        "snippet": "",
        "sizeEstimate": size_estimate,
        "payload": {
            "mimeType": "text/plain",
            "headers": [{"name": name, "value": value} for name, value in headers],
        },
    }


class DummyClient:
    """
    In-memory stand-in for GmailClient, for tests and offline runs.

    Searches understand the ``is:unread``, ``is:read`` and ``label:NAME``
    terms (space separated, all must match). Any query listed in ``queries``
    is answered verbatim from that mapping instead, even for ids that are no
    longer stored, the way a list call can race a deletion. Every call is
    appended to ``calls`` as a tuple so tests can assert on request sequencing.
    """

    MAX_BATCH_IDS = MAX_BATCH_IDS

    def __init__(self, messages: Iterable[Dict[str, Any]] = (), queries: Optional[Dict[str, List[str]]] = None,
                 fail_on: Iterable[str] = (), fail_fetch: Iterable[str] = ()):
        self._messages: Dict[str, Dict[str, Any]] = {m["id"]: copy.deepcopy(m) for m in messages}
        self._queries = dict(queries or {})
        self.fail_on = set(fail_on)  # operation names that raise RemoteError
        self.fail_fetch = set(fail_fetch)  # message ids whose fetch raises RemoteError
        self.calls: List[tuple] = []

    def connect(self) -> "DummyClient":
        return self

    def disconnect(self) -> None:
        pass

    def message(self, msg_id: str) -> Optional[Dict[str, Any]]:
        return self._messages.get(msg_id)

    def labels_of(self, msg_id: str) -> List[str]:
        return list(self._messages[msg_id]["labelIds"])

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RemoteError(f"DummyClient: injected {operation} failure", status=500)

    def _matches(self, message: Dict[str, Any], query: str) -> bool:
        labels = message["labelIds"]
        for term in query.split():
            if term == "is:unread":
                if "UNREAD" not in labels:
                    return False
            elif term == "is:read":
                if "UNREAD" in labels:
                    return False
            elif term.startswith("label:"):
                if term[len("label:"):] not in labels:
                    return False
            else:
                return False
        return True

    def search(self, user: str, query: str) -> Iterator[str]:
        self.calls.append(("search", user, query))
        self._check("search")
        if query in self._queries:
            ids = list(self._queries[query])
        else:
            ids = [i for i, m in self._messages.items() if self._matches(m, query)]
        for msg_id in ids:
            yield msg_id

    def fetch_metadata(self, user: str, msg_id: str) -> Dict[str, Any]:
        self.calls.append(("fetch", user, msg_id))
        self._check("fetch")
        if msg_id in self.fail_fetch:
            raise RemoteError(f"DummyClient: injected fetch failure for {msg_id}", status=500)
        if msg_id not in self._messages:
            raise RemoteError(f"DummyClient: message {msg_id} not found", status=404)
        return copy.deepcopy(self._messages[msg_id])

    def batch_remove_label(self, user: str, ids: List[str], label: str) -> None:
        self.calls.append(("batch_remove_label", user, list(ids), label))
        self._check("batch_remove_label")
        for msg_id in ids:
            message = self._messages.get(msg_id)
            if message and label in message["labelIds"]:
                message["labelIds"].remove(label)

    def batch_delete(self, user: str, ids: List[str]) -> None:
        self.calls.append(("batch_delete", user, list(ids)))
        self._check("batch_delete")
        for msg_id in ids:
            self._messages.pop(msg_id, None)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass
