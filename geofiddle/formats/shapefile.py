"""Shapefile codec (parse only).

Input is a zipped shapefile encoded as base64, optionally wrapped in a
``data:...;base64,`` URL. Every ``.shp`` member of the archive is opened
as a layer through fiona's ``ZipMemoryFile``; features of all layers are
concatenated.

The projection is read from the layer CRS (``.prj``). EPSG 4326, 3857
and 27700 are reported as detected; anything else, or a missing
``.prj``, falls back to WGS 84.

Writing shapefiles is not supported: ``format_shapefile`` raises
``FormatterError``.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
import zipfile
from typing import TYPE_CHECKING, Any

from geofiddle.core.constants import SHAPEFILE
from geofiddle.core.exceptions import FormatterError, GeoFiddleError
from geofiddle.formats._base import FormatCodec
from geofiddle.models.feature import ParseResult, assign_feature_ids
from geofiddle.models.geometry import geometry_from_geojson
from geofiddle.projections.definitions import SupportedProjection, projection_for_srid

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geofiddle.models.feature import Feature, FormatOptions
    from geofiddle.models.geometry import Geometry

logger = logging.getLogger("geofiddle.formats.shapefile")

DATA_URL_PREFIX = re.compile(r"^data:[^,]*?;base64,", re.IGNORECASE)

# base64 of the zip local-file-header signature ``PK\x03\x04``
ZIP_BASE64_SIGNATURE = "UEsDB"

_SourceItem = tuple[object | None, "Geometry | None", dict[str, Any]]


def _decode_archive(text: str) -> bytes:
    """Strip a data-URL prefix and base64-decode.

    Raises:
        binascii.Error: If the payload is not valid base64.
    """
    payload = DATA_URL_PREFIX.sub("", text.strip())
    return base64.b64decode("".join(payload.split()), validate=True)


def _layer_paths(archive: bytes) -> list[str]:
    """``.shp`` member paths inside the zip, in archive order."""
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        return [name for name in zf.namelist() if name.lower().endswith(".shp")]


def _layer_projection(collection: Any) -> SupportedProjection:
    crs = getattr(collection, "crs", None)
    if not crs:
        return SupportedProjection.WGS84
    epsg = crs.to_epsg()
    projection = projection_for_srid(epsg) if epsg is not None else None
    if projection is None:
        logger.warning("Shapefile CRS %s is not supported; assuming WGS 84", crs)
        return SupportedProjection.WGS84
    return projection


def _read_layers(archive: bytes) -> tuple[list[_SourceItem], SupportedProjection | None]:
    """Read every layer of the archive.

    Raises:
        zipfile.BadZipFile: If the payload is not a zip archive.
        fiona.errors.FionaError: If a layer cannot be opened.
        GeometryError: If a record geometry cannot be converted.
    """
    from fiona.io import ZipMemoryFile
    from shapely.geometry import mapping, shape

    items: list[_SourceItem] = []
    projection: SupportedProjection | None = None

    with ZipMemoryFile(archive) as memfile:
        for path in _layer_paths(archive):
            with memfile.open(path) as collection:
                if projection is None:
                    projection = _layer_projection(collection)
                for record in collection:
                    geometry = None
                    if record.geometry is not None:
                        geometry = geometry_from_geojson(mapping(shape(record.geometry)))
                    properties = dict(record.properties or {})
                    items.append((None, geometry, properties))
            logger.debug("Read shapefile layer %s", path)

    return items, projection


def parse_shapefile(text: str) -> ParseResult:
    """Parse a base64-encoded zipped shapefile."""
    from fiona.errors import FionaError

    if not text.strip():
        return ParseResult(detected_format=SHAPEFILE)

    try:
        archive = _decode_archive(text)
        if not _layer_paths(archive):
            return ParseResult.failure("No .shp file found in archive", detected_format=SHAPEFILE)
        items, projection = _read_layers(archive)
    except binascii.Error as exc:
        return ParseResult.failure(f"Invalid base64 data: {exc}", detected_format=SHAPEFILE)
    except zipfile.BadZipFile as exc:
        return ParseResult.failure(f"Invalid zip archive: {exc}", detected_format=SHAPEFILE)
    except (FionaError, GeoFiddleError, ValueError) as exc:
        logger.warning("Shapefile could not be read: %s", exc)
        return ParseResult.failure(f"Failed to parse shapefile: {exc}", detected_format=SHAPEFILE)

    if not items:
        return ParseResult.failure("No features found in shapefile", detected_format=SHAPEFILE)

    features = assign_feature_ids(items)
    logger.info("Parsed %d shapefile feature(s)", len(features))
    return ParseResult(
        features=features,
        detected_format=SHAPEFILE,
        detected_projection=projection or SupportedProjection.WGS84,
    )


def format_shapefile(features: Sequence[Feature], options: FormatOptions | None = None) -> str:
    """Always raises; shapefiles are an input-only format."""
    msg = "Shapefile output is not supported"
    raise FormatterError(msg)


def detect_shapefile(text: str) -> bool:
    """Recognise base64 zip data, with or without a data-URL prefix."""
    payload = DATA_URL_PREFIX.sub("", text.strip())
    return payload.startswith(ZIP_BASE64_SIGNATURE)


CODEC = FormatCodec(
    name=SHAPEFILE,
    label="Shapefile",
    parse=parse_shapefile,
    format=format_shapefile,
    detect=detect_shapefile,
)
