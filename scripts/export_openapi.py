from __future__ import annotations

import argparse
import json
from pathlib import Path

from services.api.app import create_app
from services.api.config import Settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Write the genstudio OpenAPI document to disk")
    parser.add_argument("--out", default="docs/openapi/openapi.v1.json", help="Destination JSON file")
    parser.add_argument("--indent", type=int, default=None, help="Pretty-print with this indent")
    args = parser.parse_args()

    # Built from default settings so the document never depends on local credentials
    doc = create_app(Settings()).openapi()
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    separators = (",", ": ") if args.indent else (",", ":")
    out.write_text(json.dumps(doc, ensure_ascii=False, indent=args.indent, separators=separators, sort_keys=True), encoding="utf-8")

    print(f"Wrote {out} ({len(doc.get('paths', {}))} paths)")


if __name__ == "__main__":
    main()
