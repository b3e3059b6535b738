"""Result-returning wrapper over a key-value namespace binding."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Literal, Mapping, TypeVar

from .protocols import KVNamespaceProtocol
from .result import Failure, Result, Success


logger = logging.getLogger(__name__)

T = TypeVar("T")

KVOperation = Literal["get", "put", "list", "delete"]


@dataclass(frozen=True)
class KVNamespaceError:
    """A key-value call failed.

    Attributes:
        operation: The call that failed
        key: Key involved, None for list
        reason: Message of the raised failure
        cause: The raised failure itself
    """

    operation: KVOperation
    key: str | None
    reason: str
    cause: object = field(default=None, compare=False)
    kind: Literal["KVNamespaceError"] = "KVNamespaceError"

    @property
    def message(self) -> str:
        target = f' for key "{self.key}"' if self.key is not None else ""
        return f"KV {self.operation} failed{target}: {self.reason}"


@dataclass(frozen=True)
class KVListResult:
    """One page of key names."""

    keys: tuple[str, ...]
    list_complete: bool
    cursor: str | None = None


class KVNamespace:
    """Key-value namespace whose calls return ``Result`` instead of raising.

    A missing key is ``Success(None)``, not a failure.
    """

    def __init__(self, provider: KVNamespaceProtocol) -> None:
        self._provider = provider

    @property
    def raw(self) -> KVNamespaceProtocol:
        return self._provider

    async def _attempt(
        self, operation: KVOperation, key: str | None, call: Callable[[], Awaitable[T]]
    ) -> Result[T, KVNamespaceError]:
        try:
            value = await call()
        except Exception as exc:
            error = KVNamespaceError(
                operation=operation, key=key, reason=str(exc) or type(exc).__name__, cause=exc
            )
            logger.debug(error.message)
            return Failure(error)
        return Success(value)

    async def get(self, key: str) -> Result[str | None, KVNamespaceError]:
        return await self._attempt("get", key, lambda: self._provider.get(key))

    async def put(
        self,
        key: str,
        value: str,
        expiration_ttl: int | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> Result[None, KVNamespaceError]:
        return await self._attempt(
            "put",
            key,
            lambda: self._provider.put(
                key,
                value,
                expiration_ttl=expiration_ttl,
                metadata=dict(metadata) if metadata is not None else None,
            ),
        )

    async def list(
        self,
        prefix: str | None = None,
        limit: int | None = None,
        cursor: str | None = None,
    ) -> Result[KVListResult, KVNamespaceError]:
        listed = await self._attempt(
            "list",
            None,
            lambda: self._provider.list(prefix=prefix, limit=limit, cursor=cursor),
        )
        return listed.map(
            lambda page: KVListResult(
                keys=tuple(entry.name for entry in page.keys),
                list_complete=page.list_complete,
                cursor=page.cursor,
            )
        )

    async def delete(self, key: str) -> Result[None, KVNamespaceError]:
        return await self._attempt("delete", key, lambda: self._provider.delete(key))


__all__ = ["KVListResult", "KVNamespace", "KVNamespaceError", "KVOperation"]
