"""
The retrieval, mark-read and deletion stages, and the run that ties them together.

A run is strictly sequential: every query in ``retrieve_conditions`` is
exported (up to ``limit`` messages in total), the exported messages are
marked read in a single batch, then every query in ``delete_conditions`` is
deleted. Export is at-least-once: if a run dies between exporting and
marking read, the next run exports the same messages again.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import Config
from .errors import HeadlineError, RemoteError
from .excerpt import extract_excerpt
from .gmail_client import GmailClient
from .storage import ExcerptStorage, JsonLinesStorage

logger = logging.getLogger(__name__)

UNREAD = "UNREAD"


@dataclass
class RetrievalResult:
    ids: List[str] = field(default_factory=list)  # exported, in export order
    skipped: List[str] = field(default_factory=list)  # excluded by skip label
    failed: List[str] = field(default_factory=list)  # fetch failed
    limit_reached: bool = False


@dataclass
class RunResult:
    retrieval: RetrievalResult = field(default_factory=RetrievalResult)
    marked_read: int = 0
    deleted: Dict[str, int] = field(default_factory=dict)  # query -> count
    dry_run: bool = False

    @property
    def retrieved(self) -> int:
        return len(self.retrieval.ids)


@contextmanager
def _stage(name: str):
    """Tag any HeadlineError escaping the block with the stage it came from"""
    try:
        yield
    except HeadlineError as e:
        if e.stage is None:
            e.stage = name
        raise


def retrieve(client, user: str, queries: Iterable[str], limit: int, storage: ExcerptStorage,
             skip_labels: Iterable[str] = ()) -> RetrievalResult:
    """
    Export messages matching each query, in order, until ``limit`` are exported.

    Args:
        client: GmailClient (or anything with the same search/fetch_metadata calls)
        user: Gmail user id, normally "me"
        queries: Gmail search expressions, processed in the given order
        limit: Maximum number of messages exported over all queries
        storage: Destination for the excerpts
        skip_labels: Messages carrying any of these labels are left alone

    Returns:
        RetrievalResult whose ``ids`` are exactly the messages that were
        durably exported, ready for mark_read.

    A failed fetch of a single message is logged and skipped. A failed
    search or a failed write propagates.
    """
    result = RetrievalResult()
    skip = set(skip_labels)
    seen = set()

    for query in queries:
        if len(result.ids) >= limit:
            result.limit_reached = True
            break

        logger.info("Retrieve q: %s", query)
        for msg_id in client.search(user, query):
            # A message matching two queries is exported once
            if msg_id in seen:
                continue
            seen.add(msg_id)

            try:
                message = client.fetch_metadata(user, msg_id)
            except RemoteError as e:
                logger.warning("Skipping message %s: %s", msg_id, e)
                result.failed.append(msg_id)
                continue

            labels = message.get("labelIds") or []
            if skip.intersection(labels):
                logger.debug("Skipping message %s: labelled %s", msg_id, sorted(skip.intersection(labels)))
                result.skipped.append(msg_id)
                continue

            excerpt = extract_excerpt(message)
            storage.store_excerpt(excerpt)
            # Only accumulate once the excerpt is on disk
            result.ids.append(msg_id)

            if len(result.ids) >= limit:
                logger.info("Reached retrieve limit (%d) for this run.", limit)
                result.limit_reached = True
                break

        logger.info("Retrieved %d mails.", len(result.ids))
        if result.limit_reached:
            break

    return result


def mark_read(client, user: str, ids: List[str], dry_run: bool = False) -> int:
    """
    Remove the UNREAD label from ``ids`` in one batch request.

    Returns the number of messages marked (or, in a dry run, that would be).
    An empty ``ids`` issues no request.
    """
    if not ids:
        logger.info("No mails to mark as read.")
        return 0

    if dry_run:
        logger.info("Dry run: would change %d mails to READ.", len(ids))
        return len(ids)

    client.batch_remove_label(user, list(ids), UNREAD)
    logger.info("Change %d mails to READ.", len(ids))
    return len(ids)


def delete_matching(client, user: str, queries: Iterable[str], dry_run: bool = False) -> Dict[str, int]:
    """
    Delete every message matching each query, one batch per query.

    Queries matching nothing are logged and skipped. No limit applies here.
    Returns the number of messages deleted (or that would be) per query.
    """
    deleted: Dict[str, int] = {}
    batch_size = client.MAX_BATCH_IDS

    for query in queries:
        logger.info("Delete q: %s", query)
        ids = list(dict.fromkeys(client.search(user, query)))
        if not ids:
            logger.info("No mail found for %s", query)
            deleted[query] = 0
            continue

        if dry_run:
            logger.info("Dry run: would delete %d mails.", len(ids))
            deleted[query] = len(ids)
            continue

        # One request unless Gmail's per-request ceiling forces more
        for i in range(0, len(ids), batch_size):
            client.batch_delete(user, ids[i:i + batch_size])
        logger.info("Deleted %d mails.", len(ids))
        deleted[query] = len(ids)

    return deleted


def run(config: Config, client=None, storage: Optional[ExcerptStorage] = None, dry_run: bool = False) -> RunResult:
    """
    Execute one full run: retrieve and export, mark read, delete.

    Args:
        config: Resolved configuration
        client: Session to use; a GmailClient is built and connected from
                ``config`` when omitted
        storage: Export destination; defaults to a JsonLinesStorage on
                 ``config.output_file``
        dry_run: Export as usual but only log the mark-read and delete mutations

    Raises:
        HeadlineError: with ``stage`` set, on any fatal failure. Excerpts
        already written stay in the output file.
    """
    result = RunResult(dry_run=dry_run)

    with _stage("session"):
        if client is None:
            client = GmailClient(config.credentials_file, config.token_file)
        client.connect()

    if storage is None:
        storage = JsonLinesStorage(config.output_file)

    with _stage("retrieve"):
        with storage:
            result.retrieval = retrieve(
                client,
                config.user,
                config.retrieve_conditions,
                config.limit,
                storage,
                skip_labels=config.skip_labels,
            )

    with _stage("mark-read"):
        result.marked_read = mark_read(client, config.user, result.retrieval.ids, dry_run=dry_run)

    with _stage("delete"):
        result.deleted = delete_matching(client, config.user, config.delete_conditions, dry_run=dry_run)

    return result
