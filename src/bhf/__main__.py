import argparse
import json
import logging
import os
import sys
import base64
from bhf.lib.bhf import BHFFile
from bhf.lib.exceptions import BHFError
from bhf.lib.formatter import TextFormat


class BytesEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, bytes):
            return base64.b64encode(obj).decode("ascii")
        return json.JSONEncoder.default(self, obj)


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s - %(name)s - %(message)s")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Dump BHF help file structure to JSON, or render its text.")
    parser.add_argument("bhf_filepath", help="Path to the BHF file.")
    parser.add_argument("--text", type=int, metavar="CONTEXT", help="Render the text of a context id.")
    parser.add_argument("--html", action="store_true", help="Render text as HTML instead of plain text.")
    parser.add_argument("--no-reflow", action="store_true", help="Keep the line breaks stored in the file.")
    parser.add_argument("--records", action="store_true", help="List every record header in the file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if not os.path.exists(args.bhf_filepath):
        print(f"Error: File not found at {args.bhf_filepath}")
        return 1

    try:
        bhf_file = BHFFile(filepath=args.bhf_filepath, reflow=not args.no_reflow)
    except BHFError as e:
        print(f"Error parsing BHF file: {e}")
        return 1

    if args.records:
        for header in bhf_file.iter_records():
            print(f"{header.offset:#08x} type={header.record_type} length={header.length}")
    elif args.text is not None:
        text_format = TextFormat.HTML if args.html else TextFormat.PLAIN_TEXT
        print(bhf_file.render_context(args.text, text_format))
    else:
        print(json.dumps(bhf_file.model_dump(), indent=2, cls=BytesEncoder))

    if bhf_file.last_error:
        print(f"Warning: {bhf_file.last_error}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
