"""Model registry.

The registry is the loaded, read-only view of every declared source table and
model. Nodes live in a single indexed tuple (source tables first, then models,
each in declaration order) so graph code can work with plain integer indices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from layerlint.lib.definitions import parse_model, parse_source
from layerlint.lib.descriptors import Layer, ModelDescriptor, SourceDescriptor
from layerlint.lib.errors import DuplicateNameError

logger = logging.getLogger(__name__)

__all__ = ["ModelRegistry", "RegistryNode", "build_registry"]

ModelInput = Union[ModelDescriptor, Mapping[str, Any]]
SourceInput = Union[SourceDescriptor, Mapping[str, Any]]


@dataclass(frozen=True)
class RegistryNode:
    """A graph node: either one source table or one model."""

    index: int
    name: str
    layer: Layer
    model: Optional[ModelDescriptor] = None
    source: Optional[SourceDescriptor] = None

    @property
    def is_model(self) -> bool:
        return self.model is not None

    @property
    def origin(self) -> Optional[str]:
        if self.model is not None:
            return self.model.origin
        if self.source is not None:
            return self.source.origin
        return None


class ModelRegistry:
    """Read-only mapping of name -> node, backed by an indexed tuple."""

    def __init__(
        self,
        nodes: Tuple[RegistryNode, ...],
        sources: Tuple[SourceDescriptor, ...] = (),
    ) -> None:
        self._nodes = nodes
        self._sources = sources
        self._index: Dict[str, int] = {node.name: node.index for node in nodes}

    @property
    def nodes(self) -> Tuple[RegistryNode, ...]:
        return self._nodes

    @property
    def sources(self) -> Tuple[SourceDescriptor, ...]:
        return self._sources

    @property
    def models(self) -> Tuple[ModelDescriptor, ...]:
        return tuple(node.model for node in self._nodes if node.model is not None)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[RegistryNode]:
        return iter(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def index_of(self, name: str) -> Optional[int]:
        return self._index.get(name)

    def get(self, name: str) -> Optional[RegistryNode]:
        idx = self._index.get(name)
        return self._nodes[idx] if idx is not None else None

    def model(self, name: str) -> Optional[ModelDescriptor]:
        node = self.get(name)
        return node.model if node is not None else None

    def __repr__(self) -> str:
        return (
            f"ModelRegistry(models={len(self.models)}, "
            f"sources={len(self._sources)}, nodes={len(self._nodes)})"
        )


def build_registry(
    models: Iterable[ModelInput] = (),
    sources: Iterable[SourceInput] = (),
) -> ModelRegistry:
    """Load model and source definitions into a registry.

    Args:
        models: Model descriptors or definition mappings
        sources: Source descriptors or definition mappings

    Returns:
        ModelRegistry with source tables first, then models

    Raises:
        DuplicateNameError: If two models, two sources, or a model and a
            source table share a name
        MalformedDescriptorError: If a definition lacks a name or layer

    Example:
        >>> registry = build_registry(
        ...     models=[{"name": "stg_shop__orders", "layer": "staging",
        ...              "references": ["shop.orders"]}],
        ...     sources=[{"name": "shop", "tables": ["orders"]}],
        ... )
        >>> registry.get("shop.orders").layer
        <Layer.SOURCE: 'source'>
    """
    seen: Dict[str, Optional[str]] = {}

    def claim(name: str, origin: Optional[str]) -> None:
        if name in seen:
            raise DuplicateNameError(
                name,
                first_origin=seen[name],
                second_origin=origin,
            )
        seen[name] = origin

    nodes = []
    parsed_sources = []

    for i, raw in enumerate(sources):
        source = parse_source(raw, index=i)
        claim(source.name, source.origin)
        parsed_sources.append(source)
        for qualified in source.table_names():
            claim(qualified, source.origin)
            nodes.append(
                RegistryNode(
                    index=len(nodes),
                    name=qualified,
                    layer=Layer.SOURCE,
                    source=source,
                )
            )

    for i, raw in enumerate(models):
        model = parse_model(raw, index=i)
        claim(model.name, model.origin)
        nodes.append(
            RegistryNode(
                index=len(nodes),
                name=model.name,
                layer=model.layer,
                model=model,
            )
        )

    registry = ModelRegistry(tuple(nodes), tuple(parsed_sources))
    logger.debug(
        "Loaded registry: %d models, %d sources, %d nodes",
        len(registry.models),
        len(parsed_sources),
        len(nodes),
    )
    return registry
