"""Projection definitions for the three supported reference systems.

The definitions are fixed PROJ strings, not EPSG lookups, so results do
not depend on which grids the local PROJ install ships. British National
Grid carries an explicit 7-parameter Helmert shift to WGS 84.

The table is built once at import time and exposed read-only.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from types import MappingProxyType


class SupportedProjection(enum.Enum):
    """The reference systems the converter understands.

    Values are EPSG codes so they can be handed straight to formats that
    carry a CRS identifier.
    """

    WGS84 = "EPSG:4326"
    WEB_MERCATOR = "EPSG:3857"
    BNG = "EPSG:27700"

    @property
    def srid(self) -> int:
        """Numeric EPSG code (e.g. ``27700``)."""
        return PROJECTION_DEFINITIONS[self].srid

    @property
    def label(self) -> str:
        """Display label (e.g. ``"British National Grid"``)."""
        return PROJECTION_DEFINITIONS[self].label


@dataclass(frozen=True, slots=True)
class ProjectionDefinition:
    """Cartographic parameters for one supported projection.

    Attributes:
        projection: The enum member this definition describes.
        srid: EPSG code.
        proj_string: PROJ definition used to build the CRS.
        label: Human-readable label.
        geographic: Whether x/y are lon/lat degrees.
    """

    projection: SupportedProjection
    srid: int
    proj_string: str
    label: str
    geographic: bool = False


PROJECTION_DEFINITIONS = MappingProxyType(
    {
        SupportedProjection.WGS84: ProjectionDefinition(
            projection=SupportedProjection.WGS84,
            srid=4326,
            proj_string="+proj=longlat +datum=WGS84 +no_defs",
            label="WGS84 (lon/lat)",
            geographic=True,
        ),
        SupportedProjection.WEB_MERCATOR: ProjectionDefinition(
            projection=SupportedProjection.WEB_MERCATOR,
            srid=3857,
            proj_string=(
                "+proj=merc +a=6378137 +b=6378137 +lat_ts=0 +lon_0=0 +x_0=0 +y_0=0 "
                "+k=1 +units=m +nadgrids=@null +wktext +no_defs"
            ),
            label="Web Mercator",
        ),
        SupportedProjection.BNG: ProjectionDefinition(
            projection=SupportedProjection.BNG,
            srid=27700,
            proj_string=(
                "+proj=tmerc +lat_0=49 +lon_0=-2 +k=0.9996012717 +x_0=400000 +y_0=-100000 "
                "+ellps=airy "
                "+towgs84=446.448,-125.157,542.06,0.15,0.247,0.842,-20.489 "
                "+units=m +no_defs"
            ),
            label="British National Grid",
        ),
    }
)

PROJECTION_LABELS = MappingProxyType(
    {projection: definition.label for projection, definition in PROJECTION_DEFINITIONS.items()}
)

_SRID_INDEX = MappingProxyType(
    {definition.srid: projection for projection, definition in PROJECTION_DEFINITIONS.items()}
)

# Names accepted by resolve_projection besides EPSG codes.
_ALIASES = MappingProxyType(
    {
        "wgs84": SupportedProjection.WGS84,
        "wgs 84": SupportedProjection.WGS84,
        "webmercator": SupportedProjection.WEB_MERCATOR,
        "web_mercator": SupportedProjection.WEB_MERCATOR,
        "web mercator": SupportedProjection.WEB_MERCATOR,
        "bng": SupportedProjection.BNG,
        "british national grid": SupportedProjection.BNG,
        "osgb36": SupportedProjection.BNG,
    }
)

_EPSG_PATTERN = re.compile(r"^(?:EPSG:)?(\d+)$", re.IGNORECASE)


def projection_for_srid(srid: int) -> SupportedProjection | None:
    """Map an EPSG code to a supported projection, or ``None``."""
    return _SRID_INDEX.get(srid)


def resolve_projection(value: SupportedProjection | str | None) -> SupportedProjection | None:
    """Resolve a user-supplied projection reference.

    Accepts enum members, EPSG codes (``"EPSG:27700"``), bare SRIDs
    (``"27700"``) and names (``"BNG"``, ``"WGS84"``, ``"WebMercator"``),
    case-insensitively. Returns ``None`` for anything unrecognised.
    """
    if value is None:
        return None
    if isinstance(value, SupportedProjection):
        return value

    text = value.strip()
    match = _EPSG_PATTERN.match(text)
    if match:
        return projection_for_srid(int(match.group(1)))
    return _ALIASES.get(text.lower())


def get_definition(projection: SupportedProjection) -> ProjectionDefinition:
    """Return the fixed definition for a projection."""
    return PROJECTION_DEFINITIONS[projection]
