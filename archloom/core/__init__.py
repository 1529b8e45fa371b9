# Lazy imports so `import archloom.core` does not load httpx, pydantic or yaml
# until one of the exported names is actually used.

__all__ = [
    "DiagramService",
    "DiagramConfig",
    "OutputSpec",
    "StaticGraph",
    "load_config",
    "load_graph",
]

_IMPORT_MAP = {
    "DiagramService": ".diagrams",
    "DiagramConfig": ".config",
    "OutputSpec": ".config",
    "StaticGraph": ".graph",
    "load_config": ".config",
    "load_graph": ".graph",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'archloom.core' has no attribute {name}")
