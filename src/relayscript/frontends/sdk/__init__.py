"""Python SDK for driving relayscript workers.

Example:
    >>> from relayscript.frontends.sdk import WorkerClient
    >>>
    >>> async with await WorkerClient.spawn() as client:
    ...     result = await client.call("add", {"a": 1, "b": 2}, definition="args['a'] + args['b']")
"""

from relayscript.frontends.sdk.client import WorkerClient, WorkerError

__all__ = ["WorkerClient", "WorkerError"]
