"""Print one image file through Epson Connect and show the job status.

Example (L-size photo paper, borderless):
    python print_photo.py pizza.jpg --paper-size ms_l --media-type mt_photopaper \
        --quality high --borderless
"""

import argparse
import json
import sys
from pathlib import Path

from config import Config
from core.exceptions import FancamPrintError
from core.settings import EpsonSettings
from models.print_settings import PrintSettings
from services.print_service import PrintService


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Print an image via Epson Connect")
    parser.add_argument("image", type=Path, help="Image file to print")
    parser.add_argument("--device", help="Printer address (default: EPSON_DEVICE)")
    parser.add_argument("--paper-size", help="Media size code, e.g. ms_a4, ms_l")
    parser.add_argument("--media-type", help="Media type code, e.g. mt_photopaper")
    parser.add_argument("--quality", help="draft, normal or high")
    parser.add_argument("--borderless", action="store_true", default=None)
    parser.add_argument("--copies", type=int)
    parser.add_argument("--job-name")
    parser.add_argument("--print-mode", help="document or photo")
    return parser.parse_args(argv)


def main(argv=None):
    """Print the image and write the job JSON to stdout."""
    args = parse_args(argv)

    if not args.image.is_file():
        print(f"ERROR: File not found: {args.image}", file=sys.stderr)
        return 1

    settings = PrintSettings(
        paper_size=args.paper_size,
        media_type=args.media_type,
        quality=args.quality,
        borderless=args.borderless,
        copies=args.copies,
        job_name=args.job_name or args.image.name,
        print_mode=args.print_mode,
    )

    image_data = args.image.read_bytes()
    print(f"Printing {args.image} ({len(image_data)} bytes)...", file=sys.stderr)

    try:
        with PrintService(EpsonSettings.from_config(Config)) as service:
            job = service.print_photo(args.device, image_data, args.image.name, settings)
    except FancamPrintError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Job {job.job_id}: {job.status}", file=sys.stderr)
    print(json.dumps(job.raw or job.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
