"""
Component Factory for lancekit.

This module implements the factory pattern for creating embedders. It uses
a registry to map configuration strings (e.g., 'sentence_transformer') to
the actual embedder classes, so the embedder of each table can be chosen
in the YAML configuration.
"""

import logging
from ..components.embedders import (
    SentenceTransformerEmbedder,
    OpenAIEmbedder,
    HashEmbedder,
    ChunkingEmbedder,
)

logger = logging.getLogger(__name__)

# A registry mapping 'type' strings to their corresponding Embedder classes.
EMBEDDER_REGISTRY = {
    "sentence_transformer": SentenceTransformerEmbedder,
    "openai": OpenAIEmbedder,
    "hash": HashEmbedder,
    "chunking": ChunkingEmbedder,
}


def build_component(component_config, registry: dict):
    """
    Builds a component instance from a configuration and a registry.

    The configuration must name a 'type' that is looked up in the registry;
    the class is then instantiated with the parameters from 'config'. A
    parameter that is itself a component configuration (a dict with a
    'type' key, such as the inner embedder of a chunking embedder) is built
    first, from the same registry.

    Args:
        component_config: The component's configuration, either a dict with
            'type' and 'config' keys or a ComponentConfig model.
        registry (dict): The registry (e.g., EMBEDDER_REGISTRY) to look up the
            component class.

    Returns:
        An instance of the component class.

    Raises:
        ValueError: If the 'type' is not specified in the config or if the
            type is not found in the registry.
    """
    if hasattr(component_config, "model_dump"):
        component_config = component_config.model_dump()

    component_type = component_config.get("type", "")
    config = dict(component_config.get("config") or {})

    if not component_type:
        raise ValueError("Component 'type' not specified in configuration.")

    component_class = registry.get(component_type)
    if not component_class:
        raise ValueError(f"'{component_type}' is not a valid component type.")

    for key, value in config.items():
        if isinstance(value, dict) and "type" in value:
            config[key] = build_component(value, registry)

    logger.debug(
        f"Building component '{component_class.__name__}' with config: {config}"
    )
    return component_class(**config)
