"""Finalize icon markup CLI.

Renders the export-ready markup of every ``*.svg`` in a directory: the icon's
default variant when one is set, otherwise its committed color mapping. Icons
without a profile are copied unchanged.

Features:
 - Reads the profile document written by the editor (``--variants``).
 - Writes results into ``--output`` (omit it for a dry run).
 - Emits either a human-readable summary or JSON (via ``--json``).
 - Exit code 0 on success, 2 when the input directory does not exist.

Example:
  python cli/finalize_icons.py --variants data/icon_variants.json \\
      --input icons/ --output dist/icons --json
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

from config.settings import DATA_DIR, VARIANTS_FILENAME
from iconstudio.services.profile_persistence import ProfileDocumentStore
from iconstudio.services.variant_store import VariantStore


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Render final icon markup from saved variants")
    p.add_argument(
        "--variants",
        default=os.path.join(DATA_DIR, VARIANTS_FILENAME),
        help="Profile document written by the editor (default: %(default)s)",
    )
    p.add_argument("--input", required=True, help="Directory containing source *.svg files")
    p.add_argument(
        "--output",
        default=None,
        help="Directory for finalized files (omitted: dry run, nothing is written)",
    )
    p.add_argument("--json", action="store_true", help="Emit JSON instead of human-readable text")
    return p.parse_args(argv)


def _source_of(store: VariantStore, icon: str) -> str:
    profile = store.get_profile(icon)
    if profile is None:
        return "none"
    if profile.default_variant:
        return f"variant:{profile.default_variant}"
    if profile.color_mapping:
        return "color_mapping"
    return "none"


def finalize_directory(store: VariantStore, input_dir: Path, output_dir: Path | None) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    if output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
    for path in sorted(input_dir.glob("*.svg")):
        icon = path.stem
        source = path.read_text(encoding="utf-8")
        final = store.render_final(icon, source)
        if output_dir is not None:
            (output_dir / path.name).write_text(final, encoding="utf-8")
        results.append({"icon": icon, "source": _source_of(store, icon), "changed": final != source})
    return results


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    input_dir = Path(args.input)
    if not input_dir.is_dir():
        print(f"Input directory not found: {input_dir}", file=sys.stderr)
        return 2
    store = VariantStore(ProfileDocumentStore(args.variants))
    output_dir = Path(args.output) if args.output else None
    results = finalize_directory(store, input_dir, output_dir)
    changed = sum(1 for r in results if r["changed"])
    if args.json:
        payload = {
            "icons": results,
            "total": len(results),
            "changed": changed,
            "output": str(output_dir) if output_dir else None,
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print("Finalize Summary:")
        print(f"  Icons: {len(results)}")
        print(f"  Changed: {changed}")
        for r in results:
            if r["changed"]:
                print(f"    - {r['icon']} ({r['source']})")
        if output_dir is None:
            print("  Dry run: no files written")
        else:
            print(f"  Output: {output_dir}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
