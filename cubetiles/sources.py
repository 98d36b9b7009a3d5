"""
sources.py — Load the equirectangular source from a file, bytes or a URL.
"""

import logging
import os
import urllib.parse

import requests

from .codec import PillowCodec, SourceImage
from .errors import SourceLoadError

log = logging.getLogger(__name__)

FETCH_TIMEOUT = 60      # seconds, connect + read


def is_http_url(url) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parsed = urllib.parse.urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def fetch_url(url: str, timeout: float = FETCH_TIMEOUT) -> bytes:
    """Download the raw image bytes at url."""
    if not is_http_url(url):
        raise SourceLoadError("invalid image URL", url=url)
    log.info("fetching %s", url)
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as exc:
        raise SourceLoadError(f"failed to fetch image: {exc}", url=url) from exc
    return r.content


def load_bytes(data: bytes, codec=None) -> SourceImage:
    codec = codec or PillowCodec()
    return codec.decode(data)


def load_file(path: str, codec=None) -> SourceImage:
    if not os.path.isfile(path):
        raise SourceLoadError("file not found", path=path)
    try:
        with open(path, 'rb') as fh:
            data = fh.read()
    except OSError as exc:
        raise SourceLoadError(f"cannot read file: {exc}", path=path) from exc
    try:
        return load_bytes(data, codec)
    except SourceLoadError as exc:
        raise exc.with_context(path=path)


def load_url(url: str, codec=None, timeout: float = FETCH_TIMEOUT) -> SourceImage:
    try:
        return load_bytes(fetch_url(url, timeout), codec)
    except SourceLoadError as exc:
        raise exc.with_context(url=url)
