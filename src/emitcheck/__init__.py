"""emitcheck package root."""

from emitcheck.config import ExtractionConfig, build_config
from emitcheck.exceptions import ConfigError, EmitcheckError, UnresolvedDeclaration
from emitcheck.pipeline import AnalysisResult, run_analysis

__all__ = [
    "__version__",
    "AnalysisResult",
    "ConfigError",
    "EmitcheckError",
    "ExtractionConfig",
    "UnresolvedDeclaration",
    "build_config",
    "run_analysis",
]

__version__ = "0.1.0"
