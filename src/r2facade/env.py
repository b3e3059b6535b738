"""Environment of bindings with key-value namespaces wrapped in ``KVNamespace``."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TypeGuard

from .kv import KVNamespace
from .protocols import KVNamespaceProtocol


_KV_METHODS = ("get", "put", "list", "delete")


def is_kv_namespace(binding: object) -> TypeGuard[KVNamespaceProtocol]:
    """A binding is a KV namespace if it has callable get/put/list/delete.

    Buckets have the same four methods, so anything that can start a multipart
    upload is excluded.
    """
    if binding is None or isinstance(binding, KVNamespace):
        return False
    if hasattr(binding, "create_multipart_upload"):
        return False
    return all(callable(getattr(binding, name, None)) for name in _KV_METHODS)


class CloudflareEnv(Mapping[str, object]):
    """Read-only view of the bindings; the unwrapped mapping stays on ``raw``."""

    def __init__(self, raw: Mapping[str, object], bindings: Mapping[str, object]) -> None:
        self._raw = raw
        self._bindings = dict(bindings)

    @property
    def raw(self) -> Mapping[str, object]:
        return self._raw

    def __getitem__(self, name: str) -> object:
        return self._bindings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def kv(self, name: str) -> KVNamespace:
        """The named binding, which must be a wrapped KV namespace."""
        binding = self._bindings[name]
        if not isinstance(binding, KVNamespace):
            raise TypeError(f"Binding {name!r} is not a KV namespace")
        return binding

    def __repr__(self) -> str:
        return f"CloudflareEnv({sorted(self._bindings)!r})"


def make_env(raw: Mapping[str, object]) -> CloudflareEnv:
    """Wrap every KV namespace binding; pass all other bindings through unchanged."""
    return CloudflareEnv(
        raw,
        {
            name: KVNamespace(binding) if is_kv_namespace(binding) else binding
            for name, binding in raw.items()
        },
    )


__all__ = ["CloudflareEnv", "is_kv_namespace", "make_env"]
