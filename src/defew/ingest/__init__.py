from defew.ingest.description import load_descriptions
from defew.ingest.python_ingest import collect_descriptions, collect_file_descriptions

__all__ = [
    "collect_descriptions",
    "collect_file_descriptions",
    "load_descriptions",
]
