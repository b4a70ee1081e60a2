"""Built-in plugins for resource nodes.

Each plugin module registers its class with ``ResourceNode.register_plugin``
when imported; ``selfapi`` imports the built-in ones eagerly.
"""

__all__: list[str] = []
