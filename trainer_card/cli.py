#!/usr/bin/env python3
"""Generate a GitHub trainer card.

Usage:
  trainer-card octocat                  # writes octocat-pokemon-card.png
  trainer-card octocat --svg --out cards
  USER_NAME=octocat trainer-card --strict
"""

from __future__ import annotations
import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import List, Optional

from . import config
from .composer import CardComposer
from .errors import ExportFailure
from .export import export_filename, save_png
from .identity import derive_species_id
from .render import render_card, to_svg_bytes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("username", nargs="?", default=config.USER_NAME,
                        help="GitHub login (default: $USER_NAME)")
    parser.add_argument("--out", default=config.OUTPUT_DIR, help="output directory")
    parser.add_argument("--svg", action="store_true", help="also write the SVG surface")
    parser.add_argument("--strict", action="store_true",
                        help="fail instead of skipping images that could not be inlined")
    parser.add_argument("--scale", type=float, default=1.0, help="raster scale factor")
    return parser


def print_summary(composer: CardComposer):
    view = composer.snapshot()
    print(f"Trainer: {view.login or 'Unknown'}")
    if view.profile is not None:
        age = view.profile.account_age_label()
        if age:
            print(f"  on GitHub for {age}")
    if view.species is not None:
        types = "/".join(view.species.type_names) or "-"
        print(f"Partner: #{view.species.id} {view.species.display_name} ({types})")
    print(f"HP {view.account_age_days if view.account_age_days is not None else '--'} | "
          f"Attack {view.commit_count if view.commit_count is not None else '--'}")
    if view.error:
        print(f"[WARN] {view.error}")
    for src in view.remote_images:
        print(f"[WARN] image not inlined: {src}")


def main(argv: Optional[List[str]] = None, composer: Optional[CardComposer] = None) -> int:
    args = build_parser().parse_args(argv)
    username = (args.username or "").strip()
    if not username:
        print("ERROR: Cannot infer username. Pass one or set USER_NAME.", file=sys.stderr)
        return 1

    composer = composer or CardComposer()
    print(f"Building card for {username} (partner #{derive_species_id(username)})...")
    t0 = time.time()
    asyncio.run(composer.submit(username))
    print_summary(composer)

    view = composer.snapshot()
    surface = render_card(view)
    out_dir = Path(args.out)
    try:
        if args.svg:
            svg_name = export_filename(view.login, username)[:-len(".png")] + ".svg"
            svg_path = out_dir / svg_name
            out_dir.mkdir(parents=True, exist_ok=True)
            svg_path.write_bytes(to_svg_bytes(surface))
            print(f"Wrote {svg_path}")
        path = save_png(surface, out_dir, view.login, username, strict=args.strict, scale=args.scale)
    except (ExportFailure, OSError) as e:
        print(f"ERROR: export failed: {e}", file=sys.stderr)
        return 1
    print(f"Wrote {path}")
    print("Done in {:.2f}s".format(time.time() - t0))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
