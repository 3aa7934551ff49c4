"""Entity reference parsing.

References have the form ``kind:namespace/name``; the namespace defaults to
``default`` and the kind may be supplied by the caller when the reference
omits it. Kind and namespace are compared case-insensitively by the catalog,
so they are lowercased here.
"""

from typing import NamedTuple, Optional

from .exceptions import InvalidEntityRefError

DEFAULT_NAMESPACE = "default"


class EntityRef(NamedTuple):
    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.namespace}/{self.name}"


def parse_entity_ref(ref: str, default_kind: Optional[str] = None) -> EntityRef:
    """Parse an entity reference string.

    Args:
        ref: Reference such as ``user:default/jdoe`` or ``group:team-a``
        default_kind: Kind to use when the reference has none

    Returns:
        Parsed EntityRef

    Raises:
        InvalidEntityRefError: If the reference is malformed
    """
    raw = (ref or "").strip()
    if not raw:
        raise InvalidEntityRefError("Entity reference cannot be empty")

    kind, sep, rest = raw.partition(":")
    if not sep:
        kind, rest = default_kind or "", raw
    if not kind:
        raise InvalidEntityRefError(f"Entity reference '{ref}' has no kind")

    namespace, sep, name = rest.partition("/")
    if not sep:
        namespace, name = DEFAULT_NAMESPACE, rest

    if not namespace or not name or "/" in name or ":" in name:
        raise InvalidEntityRefError(
            f"Invalid entity reference '{ref}'. Expected format: kind:namespace/name"
        )

    return EntityRef(kind=kind.lower(), namespace=namespace.lower(), name=name)
