"""
cli.py — Generate Marzipano cubemap tile archives from equirectangular panoramas.

Usage:
    cubetiles <equirectangular.jpg> [<image2.jpg> ...]
    cubetiles --url https://example.com/pano.jpg

Output:
    {stem}.cubemap.zip next to each input image (or in --output-dir),
    containing config.json and {level}/{face}/{row}/{col}.jpg tiles.

Memory note: the 2048 px level renders six faces concurrently; with the
default worker count expect a few hundred MB of temporaries on top of the
decoded source.
"""

import argparse
import logging
import os
import sys
import traceback
import urllib.parse

from .convert import convert_image
from .errors import CubemapError
from .pyramid import default_workers
from .sources import load_file, load_url
from .tiling import DEFAULT_LEVELS

URL_FALLBACK_NAME = 'cubemap-tiles.zip'


# ── Output naming ─────────────────────────────────────────────────────────────

def output_path_for_file(path: str, out_dir: str | None) -> str:
    path = os.path.abspath(path)
    stem = os.path.splitext(os.path.basename(path))[0]
    return os.path.join(out_dir or os.path.dirname(path), f"{stem}.cubemap.zip")


def output_path_for_url(url: str, out_dir: str | None) -> str:
    try:
        segment = os.path.basename(urllib.parse.urlparse(url).path)
    except ValueError:
        segment = ''
    stem = os.path.splitext(segment)[0]
    name = f"{stem}.cubemap.zip" if stem else URL_FALLBACK_NAME
    return os.path.join(out_dir or os.getcwd(), name)


# ── Main processing ───────────────────────────────────────────────────────────

def process_source(label: str, load, out_path: str, levels, workers: int) -> None:
    print(f"\nProcessing: {label}")
    print(f"Output:     {out_path}")

    source = load()
    print(f"Source:     {source.width} × {source.height} px")
    print(f"Levels:     {[spec.face_size for spec in levels]}")

    def progress(done: int, total: int) -> None:
        print(f"\r  tiles {done}/{total} … ", end='', flush=True)

    result = convert_image(source, levels, workers=workers, progress=progress)
    print("done")

    os.makedirs(os.path.dirname(out_path) or '.', exist_ok=True)
    with open(out_path, 'wb') as fh:
        fh.write(result.archive)

    print(f"Tiles:      {result.total_tiles} "
          f"({result.zoom_levels} levels, max zoom {result.max_zoom})")
    print(f"Done → {out_path}\n")


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cubetiles',
        description='Generate Marzipano cubemap tile archives from equirectangular panoramas.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            'Output: {stem}.cubemap.zip next to each input image.\n'
            'Levels: 256/256 (fallback), 512/512, 1024/512, 2048/512 (face/tile px).'
        ),
    )
    parser.add_argument('images', nargs='*', help='Path(s) to equirectangular JPEG/PNG/TIFF')
    parser.add_argument('--url', action='append', default=[], metavar='URL',
                        help='Fetch an equirectangular image over HTTP(S); repeatable')
    parser.add_argument('-o', '--output-dir', help='Write archives here instead')
    parser.add_argument('--workers', type=int, default=default_workers(),
                        help='Render threads (default: %(default)s)')
    parser.add_argument('--max-level', type=int, default=len(DEFAULT_LEVELS) - 1,
                        choices=range(len(DEFAULT_LEVELS)),
                        help='Highest level to generate (default: %(default)s)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.images and not args.url:
        parser.error('no input images or --url given')
    if args.workers < 1:
        parser.error('--workers must be at least 1')

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')
    levels = DEFAULT_LEVELS[:args.max_level + 1]

    jobs = []
    for path in args.images:
        jobs.append((path, lambda p=path: load_file(p),
                     output_path_for_file(path, args.output_dir)))
    for url in args.url:
        jobs.append((url, lambda u=url: load_url(u),
                     output_path_for_url(url, args.output_dir)))

    failed = 0
    for label, load, out_path in jobs:
        try:
            process_source(label, load, out_path, levels, args.workers)
        except CubemapError as exc:
            print(f"\nERROR processing {label}: {exc}", file=sys.stderr)
            failed += 1
        except Exception as exc:
            print(f"\nERROR processing {label}: {exc}", file=sys.stderr)
            traceback.print_exc()
            failed += 1

    sys.exit(1 if failed else 0)


if __name__ == '__main__':
    main()
