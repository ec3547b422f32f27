# =============================================================================
# core/recipes.py  —  Batch shapes shared by every domain
# =============================================================================
#
# Mail, contacts and calendar all reuse the same few batch shapes:
#
#   query_then_get   Foo/query → Foo/get(#ids = query's /ids)     one round trip
#   get_records      Foo/get(ids=[...]) with notFound checked
#   get_all          Foo/get with no ids (every record)
#   update_records   Foo/set(update={id: patch, ...}) with notUpdated checked
#
# Each recipe takes the shared BatchExecutor explicitly; the domain modules
# compose these functions instead of inheriting from a common client class.
# =============================================================================

from typing import Iterable, Optional

from core.batch import BatchBuilder
from core.executor import BatchExecutor
from core.resolver import resolve


def new_batch(executor: BatchExecutor, *capabilities: str) -> BatchBuilder:
    return BatchBuilder(account_id=executor.session.account_id, using=capabilities)


def query_then_get(
    executor: BatchExecutor,
    record_type: str,
    capabilities: Iterable[str],
    filter: Optional[dict] = None,
    sort: Optional[list] = None,
    limit: Optional[int] = None,
    properties: Optional[list[str]] = None,
) -> list[dict]:
    """Query ids and fetch the matching records in a single batch.

    The fetch step's own list order is returned as-is; it is authoritative
    even if it differs from the id order the query produced.
    """
    builder = new_batch(executor, *capabilities)

    query_args: dict = {}
    if filter:
        query_args["filter"] = filter
    if sort:
        query_args["sort"] = sort
    if limit is not None:
        query_args["limit"] = limit
    query = builder.add(f"{record_type}/query", query_args, "query")

    get_args: dict = {"ids": builder.ref(query, "/ids")}
    if properties:
        get_args["properties"] = properties
    builder.add(f"{record_type}/get", get_args, "records")

    response = executor.execute(builder.build())
    resolve(response, "query")
    return resolve(response, "records", "list") or []


def get_records(
    executor: BatchExecutor,
    record_type: str,
    capabilities: Iterable[str],
    ids: list[str],
    properties: Optional[list[str]] = None,
    extra: Optional[dict] = None,
) -> list[dict]:
    """Fetch records by id; any id the server can't find is a rejection."""
    builder = new_batch(executor, *capabilities)
    args: dict = {"ids": list(ids), **(extra or {})}
    if properties:
        args["properties"] = properties
    builder.add(f"{record_type}/get", args, "records")

    response = executor.execute(builder.build())
    return resolve(response, "records", "list", targets=ids) or []


def get_all(
    executor: BatchExecutor,
    record_type: str,
    capabilities: Iterable[str],
    properties: Optional[list[str]] = None,
) -> list[dict]:
    builder = new_batch(executor, *capabilities)
    args: dict = {}
    if properties:
        args["properties"] = properties
    builder.add(f"{record_type}/get", args, "records")

    response = executor.execute(builder.build())
    return resolve(response, "records", "list") or []


def update_records(
    executor: BatchExecutor,
    record_type: str,
    capabilities: Iterable[str],
    patches: dict[str, dict],
    label: str = "update",
) -> list[str]:
    """Apply every patch in ONE /set step.

    Returns the updated ids.  If any id is refused, DomainRejectionError
    names exactly the refused ids and lists the others in .succeeded.
    """
    builder = new_batch(executor, *capabilities)
    builder.add(f"{record_type}/set", {"update": patches}, label)

    response = executor.execute(builder.build())
    resolve(response, label, targets=list(patches))
    return list(patches)
