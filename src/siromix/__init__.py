"""Top-level package for SiroMix.

Provides subpackages:
- siromix.core – shared document model, schema checks, JSON serialization
- siromix.extractor – .docx markup/asset reading, question parsing, answer validation
- siromix.builder – variant mixing, .docx/.xlsx output, export controller
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("siromix")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0"

__all__: list[str] = ["__version__"]
