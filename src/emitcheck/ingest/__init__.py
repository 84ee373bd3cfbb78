from .python_ingest import (
    ParseFailureWitness,
    PythonFileIngestCarrier,
    collect_comments,
    ingest_python_file,
    iter_python_paths,
    module_name_for,
)

__all__ = [
    "ParseFailureWitness",
    "PythonFileIngestCarrier",
    "collect_comments",
    "ingest_python_file",
    "iter_python_paths",
    "module_name_for",
]
