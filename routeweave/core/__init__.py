# Lazy imports to avoid pulling in every grammar and pass on package import.
# Targeted imports like `from routeweave.core.ast_parser import parse_source`
# stay cheap.

__all__ = [
    "convert_project",
    "ConversionOrchestrator",
    "ConversionResult",
    "ConversionState",
    "analyze",
    "classify",
    "parse_source",
    "run_passes",
    "validate",
]

_IMPORT_MAP = {
    "convert_project": ".conversion",
    "ConversionOrchestrator": ".conversion",
    "ConversionResult": ".conversion",
    "ConversionState": ".conversion",
    "analyze": ".analyzer",
    "classify": ".classifier",
    "parse_source": ".ast_parser",
    "run_passes": ".rewrite",
    "validate": ".conversion",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'routeweave.core' has no attribute {name}")
