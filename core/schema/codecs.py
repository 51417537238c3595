# ============================================================================
# VALUE CODEC REGISTRY
# ============================================================================
# EPOCH: 1 - SCHEMA RECONCILIATION
# STATUS: Core - Complex value <-> JSON text column conversion
# PURPOSE: Bidirectional converters used when binding and materializing rows
# CREATED: 13 OCT 2026
# EXPORTS: ValueCodec, ValueCodecRegistry, build_default_registry
# DEPENDENCIES: pydantic
# ============================================================================
"""
Value Codec Registry.

Complex in-memory values (sets, mappings, settings objects) live in a single
text column as JSON. Repositories consult the registry when binding a
parameter or materializing a column whose annotation is registered.

Decoding is NULL tolerant: None or empty text yields the type's empty
default (empty set / dict / list, default-constructed model), never a fault.

Usage:
    registry = build_default_registry()
    text = registry.encode(Set[Int64], {1, 2})
    value = registry.decode(Set[Int64], text)
"""

import logging
import threading
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, Hashable, Optional, Set, get_args, get_origin

from pydantic import BaseModel, TypeAdapter

from core.schema.extractor import unwrap_optional

logger = logging.getLogger(__name__)


def type_key(annotation: Any) -> Hashable:
    """
    Registry key for an annotation.

    typing and builtin generics share a key (Set[int] == set[int]) and
    Optional wrappers are ignored.
    """
    annotation = unwrap_optional(annotation)
    origin = get_origin(annotation)
    if origin is None:
        return annotation
    if origin is Annotated:
        args = get_args(annotation)
        return (Annotated, type_key(args[0])) + tuple(args[1:])
    return (origin,) + tuple(type_key(arg) for arg in get_args(annotation))


def empty_default(annotation: Any) -> Any:
    """The empty value a NULL column decodes to."""
    annotation = unwrap_optional(annotation)
    origin = get_origin(annotation) or annotation
    if origin in (set, frozenset, list, dict, tuple):
        return origin()
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation()
    return None


@dataclass(frozen=True)
class ValueCodec:
    """Converter pair for one registered type."""
    annotation: Any
    to_text: Callable[[Any], str]
    from_text: Callable[[str], Any]
    default_factory: Callable[[], Any]

    def encode(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        return self.to_text(value)

    def decode(self, text: Optional[str]) -> Any:
        if text is None or (isinstance(text, (str, bytes)) and not text.strip()):
            return self.default_factory()
        return self.from_text(text)


class ValueCodecRegistry:
    """
    Registered converters keyed by annotation.

    Registration happens once at bootstrap; lookups are read-only afterwards.
    """

    def __init__(self):
        self._codecs: Dict[Hashable, ValueCodec] = {}
        self._lock = threading.Lock()

    def register(
        self,
        annotation: Any,
        to_text: Callable[[Any], str],
        from_text: Callable[[str], Any],
        default_factory: Optional[Callable[[], Any]] = None,
    ) -> ValueCodec:
        """
        Register a converter pair.

        Args:
            annotation: Type the codec handles (e.g. Set[Int64])
            to_text: value -> JSON text
            from_text: JSON text -> value
            default_factory: Empty value for NULL columns (derived if omitted)
        """
        if default_factory is None:
            default_factory = lambda: empty_default(annotation)

        codec = ValueCodec(annotation, to_text, from_text, default_factory)
        with self._lock:
            self._codecs[type_key(annotation)] = codec
        logger.debug(f"Registered value codec for {annotation!r}")
        return codec

    def register_json(self, annotation: Any) -> ValueCodec:
        """Register a pydantic TypeAdapter based JSON codec for a type."""
        adapter = TypeAdapter(annotation)
        return self.register(
            annotation,
            to_text=lambda value: adapter.dump_json(value).decode("utf-8"),
            from_text=adapter.validate_json,
        )

    def codec_for(self, annotation: Any) -> Optional[ValueCodec]:
        return self._codecs.get(type_key(annotation))

    def is_registered(self, annotation: Any) -> bool:
        return type_key(annotation) in self._codecs

    def encode(self, annotation: Any, value: Any) -> Optional[str]:
        codec = self.codec_for(annotation)
        if codec is None:
            raise KeyError(f"No value codec registered for {annotation!r}")
        return codec.encode(value)

    def decode(self, annotation: Any, text: Optional[str]) -> Any:
        codec = self.codec_for(annotation)
        if codec is None:
            raise KeyError(f"No value codec registered for {annotation!r}")
        return codec.decode(text)

    def __len__(self) -> int:
        return len(self._codecs)


def register_default_codecs(registry: ValueCodecRegistry) -> ValueCodecRegistry:
    """Register the JSON codecs for every complex column type in the models."""
    from core.contracts import (
        DestinyCollectibleDefinition,
        DestinyMetricDefinition,
        DestinyProgressionDefinition,
        DestinyRecordDefinition,
        Int64,
        UInt32,
    )
    from core.models import DefinitionTrackSettings, DestinyProgressionSnapshot, DestinyRecordSnapshot

    registry.register_json(DefinitionTrackSettings[DestinyMetricDefinition])
    registry.register_json(DefinitionTrackSettings[DestinyRecordDefinition])
    registry.register_json(DefinitionTrackSettings[DestinyCollectibleDefinition])
    registry.register_json(DefinitionTrackSettings[DestinyProgressionDefinition])
    registry.register_json(Set[Int64])
    registry.register_json(Set[UInt32])
    registry.register_json(Dict[UInt32, DestinyRecordSnapshot])
    registry.register_json(Dict[UInt32, DestinyProgressionSnapshot])
    registry.register_json(Dict[str, str])

    logger.debug(f"Registered {len(registry)} value codecs")
    return registry


def build_default_registry() -> ValueCodecRegistry:
    return register_default_codecs(ValueCodecRegistry())


__all__ = [
    "ValueCodec",
    "ValueCodecRegistry",
    "register_default_codecs",
    "build_default_registry",
    "type_key",
    "empty_default",
]
