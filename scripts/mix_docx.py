"""
Analyze an exam .docx and export shuffled variants.

Steps:
1. Analyze the source document into a workspace (parsed.json + assets/)
2. Stop and list every question whose correct answer is not marked
3. Mix N variants and write De_<code>.docx files plus DapAn.xlsx

Example:
    python scripts/mix_docx.py exam.docx --variants 4 --out output
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path if needed
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from siromix.builder import ExamHeader, ExportConfig, ExportError, MixConfig, export_variants
from siromix.extractor import AssetExtractionError, DocxReadError, ExtractionConfig, analyze_docx

logger = logging.getLogger("mix_docx")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Shuffle a multiple-choice exam into variants.")
    parser.add_argument("source", type=Path, help="Source .docx")
    parser.add_argument("--workspace", type=Path, default=None, help="Analysis workspace (default: <out>/workspace)")
    parser.add_argument("--out", type=Path, default=Path("output"), help="Output directory")
    parser.add_argument("--variants", type=int, default=4, help="Number of variants")
    parser.add_argument("--codes", nargs="+", default=None, help="Explicit 3-digit exam codes")
    parser.add_argument("--convert-legacy", action="store_true", help="Rasterize .wmf/.emf images")
    parser.add_argument("--school", default=None, help="School name (adds the exam header table)")
    parser.add_argument("--exam-name", default="", help="Exam name for the header")
    parser.add_argument("--year", default="", help="Academic year for the header")
    parser.add_argument("--subject", default="", help="Subject for the header")
    parser.add_argument("--grade", default="", help="Grade for the header")
    parser.add_argument("--duration", type=int, default=0, help="Duration in minutes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    workspace = args.workspace or args.out / "workspace"
    try:
        analysis = analyze_docx(
            args.source,
            workspace,
            ExtractionConfig(convert_legacy_images=args.convert_legacy),
        )
    except (DocxReadError, AssetExtractionError) as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    for warning in analysis.warnings:
        logger.warning(warning)
    if not analysis.is_ready:
        for error in analysis.errors:
            print(f"  {error}")
        print(f"{len(analysis.errors)} questions need a marked answer; nothing exported.")
        return 2

    header = None
    if args.school:
        header = ExamHeader(
            school_name=args.school,
            exam_name=args.exam_name,
            academic_year=args.year,
            subject=args.subject,
            grade=args.grade,
            duration_minutes=args.duration,
        )

    try:
        config = ExportConfig(
            workspace=workspace,
            output_dir=args.out,
            mix=MixConfig(
                variant_count=args.variants,
                exam_codes=tuple(args.codes) if args.codes else None,
            ),
            header=header,
        )
        result = export_variants(config)
    except (ValueError, ExportError) as e:
        logger.error(f"Export failed: {e}")
        return 1

    for warning in result.warnings:
        logger.warning(warning)
    print(f"Exported {len(result.documents)} variants:")
    for path in result.documents:
        print(f"  {path}")
    print(f"Answer key: {result.answer_key}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
