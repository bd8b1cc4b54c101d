"""
Export one or more daily reports to PDF files without going through the API.

    python -m scripts.export_reporte_pdf recXXXXXXXXXXXXXX [recYYYY...] --out data/pdf
"""
import argparse
import asyncio
import logging
from pathlib import Path

from config.settings import get_settings
from services.airtable_gateway import AirtableGateway
from services.errors import BitacoraError
from services.pdf_service import PDFService, pdf_filename
from services.review_service import ReviewService
from utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def export_reportes(record_ids, out_dir: Path, review: ReviewService = None, pdf_service: PDFService = None) -> int:
    settings = get_settings()
    review = review or ReviewService(AirtableGateway(settings))
    pdf_service = pdf_service or PDFService(settings)
    out_dir.mkdir(parents=True, exist_ok=True)

    exported = 0
    for record_id in record_ids:
        try:
            reporte = await review.get(record_id)
            content = await pdf_service.generate_reporte_pdf(reporte)
        except BitacoraError as e:
            print(f"⚠️ {record_id}: {e.message} → skipped")
            continue
        except Exception as e:
            logger.exception(f"PDF generation failed for {record_id}")
            print(f"⚠️ {record_id}: {e} → skipped")
            continue
        path = out_dir / pdf_filename(reporte)
        path.write_bytes(content)
        exported += 1
        print(f"✅ {record_id} → {path}")
    return exported


def main():
    parser = argparse.ArgumentParser(description="Export bitácora reports to PDF")
    parser.add_argument("record_ids", nargs="+")
    parser.add_argument("--out", default="data/pdf", type=Path)
    args = parser.parse_args()

    configure_logging(get_settings().LOG_LEVEL)
    exported = asyncio.run(export_reportes(args.record_ids, args.out))
    print(f"✅ {exported}/{len(args.record_ids)} reportes exportados")


if __name__ == "__main__":
    main()
