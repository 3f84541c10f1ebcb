"""
Module: extractor.config

Purpose:
    Configuration dataclass for the analysis pipeline. Immutable settings
    for media extraction, optional legacy image conversion and workspace
    file names.

Key Classes:
    - ExtractionConfig: Main configuration for analysis

Dependencies:
    - dataclasses: For frozen dataclass support

Used By:
    - extractor.pipeline: Uses ExtractionConfig for pipeline settings
    - extractor.assets: Converter command, worker count and timeout
"""

from dataclasses import dataclass

# soffice writes <stem>.png into --outdir
DEFAULT_CONVERTER_COMMAND = (
    "soffice",
    "--headless",
    "--convert-to",
    "png",
    "--outdir",
    "{outdir}",
    "{input}",
)

LEGACY_IMAGE_EXTENSIONS = (".wmf", ".emf")


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Configuration for the analysis pipeline.

    Attributes:
        convert_legacy_images: Rasterize .wmf/.emf assets with an external
            command (default False)
        converter_command: Command template; "{input}", "{outdir}" and
            "{output}" are substituted per file
        max_workers: Concurrent conversion tasks (default 4)
        conversion_timeout_s: Per-file timeout in seconds (default 60)
        assets_dirname: Workspace sub-directory for extracted media
        parsed_filename: Workspace file for the parsed document
        strict_schema: Run full jsonschema validation on saved output
    """
    convert_legacy_images: bool = False
    converter_command: tuple[str, ...] = DEFAULT_CONVERTER_COMMAND
    max_workers: int = 4
    conversion_timeout_s: float = 60.0
    assets_dirname: str = "assets"
    parsed_filename: str = "parsed.json"
    strict_schema: bool = False

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.conversion_timeout_s <= 0:
            raise ValueError(
                f"conversion_timeout_s must be positive, got {self.conversion_timeout_s}"
            )
        if self.convert_legacy_images and not self.converter_command:
            raise ValueError("converter_command is required when convert_legacy_images is set")
        if not self.assets_dirname or not self.parsed_filename:
            raise ValueError("assets_dirname and parsed_filename must be non-empty")
