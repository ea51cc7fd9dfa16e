from __future__ import annotations

import argparse
import json
import sys

from modules.retention import executor
from modules.retention import stats as retention_stats
from modules.storage import local as store


def _output_dir(args: argparse.Namespace) -> str:
    return args.dir or str(store.from_env().output_dir)


def _cleanup_payload(result: executor.CleanupResult) -> dict:
    return {
        "deletedFiles": list(result.deleted_files),
        "totalDeleted": result.total_deleted,
        "totalSizeFreed": result.total_size,
        "errors": list(result.errors),
        "dryRun": result.dry_run,
    }


def cmd_assets_stats(args: argparse.Namespace) -> int:
    s = retention_stats.stats(_output_dir(args))
    out = {
        "totalFiles": s.total_files,
        "totalSize": s.total_size,
        "files": [
            {"name": f.name, "sizeBytes": f.size_bytes, "ageHours": f.age_hours, "canDelete": f.can_delete}
            for f in s.files
        ],
        "errors": list(s.errors),
    }
    print(json.dumps(out, ensure_ascii=False))
    return 0


def cmd_assets_cleanup(args: argparse.Namespace) -> int:
    try:
        hours = float(args.max_age_hours)
        cfg = executor.RetentionConfig(max_age_hours=hours, dry_run=bool(args.dry_run))
    except ValueError:
        print(json.dumps({"error": {"code": "invalid_input", "message": "max-age-hours must be a non-negative number"}}))
        return 2
    result = executor.run(_output_dir(args), cfg)
    print(json.dumps(_cleanup_payload(result), ensure_ascii=False))
    return 0


def cmd_assets_purge(args: argparse.Namespace) -> int:
    if args.confirm != executor.CONFIRM_TOKEN:
        print(json.dumps({"error": {"code": "invalid_input", "message": f"pass --confirm {executor.CONFIRM_TOKEN} to proceed"}}))
        return 2
    result = executor.run(_output_dir(args), executor.RetentionConfig(max_age_hours=0, dry_run=False))
    print(json.dumps(_cleanup_payload(result), ensure_ascii=False))
    return 0


def cmd_providers_status(args: argparse.Namespace) -> int:  # noqa: ARG001
    from services.api.config import from_env

    settings = from_env()
    out = {
        "gemini": {"configured": bool(settings.google_api_key), "model": settings.gemini_model},
        "openai": {"configured": bool(settings.openai_api_key), "model": settings.openai_model},
    }
    print(json.dumps(out))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="genstudio", description="genstudio admin CLI")
    sp = p.add_subparsers(dest="cmd")

    p_assets = sp.add_parser("assets", help="Generated asset retention")
    spa = p_assets.add_subparsers(dest="subcmd")

    p_stats = spa.add_parser("stats", help="List generated assets, oldest first")
    p_stats.add_argument("--dir", default=None, help="Output directory (default: $GS_OUTPUT_DIR or ./public)")
    p_stats.set_defaults(func=cmd_assets_stats)

    p_clean = spa.add_parser("cleanup", help="Delete assets older than the retention window")
    p_clean.add_argument("--dir", default=None, help="Output directory (default: $GS_OUTPUT_DIR or ./public)")
    p_clean.add_argument("--max-age-hours", default="24", help="Retention window in hours; 0 deletes everything")
    p_clean.add_argument("--dry-run", action="store_true", help="Report what would be deleted without deleting")
    p_clean.set_defaults(func=cmd_assets_cleanup)

    p_purge = spa.add_parser("purge", help="Delete every generated asset")
    p_purge.add_argument("--dir", default=None, help="Output directory (default: $GS_OUTPUT_DIR or ./public)")
    p_purge.add_argument("--confirm", default=None, help=f"Must be {executor.CONFIRM_TOKEN}")
    p_purge.set_defaults(func=cmd_assets_purge)

    p_prov = sp.add_parser("providers", help="Upstream provider configuration")
    spp = p_prov.add_subparsers(dest="subcmd")
    p_status = spp.add_parser("status", help="Show which providers have credentials")
    p_status.set_defaults(func=cmd_providers_status)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    if not hasattr(ns, "func"):
        parser.print_help()
        return 1
    return int(ns.func(ns))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
