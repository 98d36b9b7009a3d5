"""
cubetiles — Convert equirectangular panoramas into Marzipano cubemap tile pyramids.
"""

from .codec import PillowCodec, SourceImage
from .convert import (ConversionResult, convert_bytes, convert_file, convert_image,
                      convert_url)
from .errors import (CubemapError, EncodeError, GeometryError, PackagingError,
                     SourceLoadError)
from .pyramid import build_pyramid, count_tiles
from .tiling import DEFAULT_LEVELS, LevelSpec, Tile

__version__ = '1.0.0'
